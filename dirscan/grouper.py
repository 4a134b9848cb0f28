import logging
from pathlib import PurePath
from typing import Optional

from dirscan.directory_stat import DirectoryStat, PathParts, truncate_path
from dirscan.fs import FileMetadata, WalkEntry
from dirscan.formats import FormatWriter


logger = logging.getLogger(__name__)


class StreamGrouper:
    """
    Turns an ordered stream of walk entries into one DirectoryStat per group
    key, holding at most one open group at a time.

    Entries sharing a group key must arrive contiguously (depth-first, each
    directory's files before descending into a sibling subtree). This isn't
    enforced: if a key reappears after its group has been flushed, a second
    record is emitted for it rather than anything being lost.
    """

    def __init__(self, writer:FormatWriter, depth:Optional[int]=None):
        if depth is not None and depth < 1:
            raise ValueError(f"Group depth must be at least 1, got {depth!r}")
        self.writer = writer
        self.depth = depth
        self.current_key:Optional[PathParts] = None
        self.current:Optional[DirectoryStat] = None
        self.emitted = 0
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

    def _open(self, key:PathParts, is_dir:bool, metadata:Optional[FileMetadata]) -> None:
        self.current_key = key
        path = str(PurePath(*key)) if key else ""
        if is_dir or metadata is None:
            self.current = DirectoryStat(path=path)
        else:
            self.current = DirectoryStat.for_file(
                path,
                metadata.size,
                metadata.created,
                metadata.accessed,
                metadata.modified,
            )

    def _accumulate(self, is_dir:bool, metadata:Optional[FileMetadata]) -> None:
        # directory entries of an already open group aren't counted
        if is_dir or metadata is None:
            return
        self.current.accumulate_file(
            metadata.size,
            metadata.created,
            metadata.accessed,
            metadata.modified,
        )

    def flush(self) -> None:
        if self.current is None:
            return
        stat, self.current, self.current_key = self.current, None, None
        if self.closed:
            logger.debug("output closed, dropping record for %s", stat.path)
            return
        try:
            self.writer.write_stat(stat)
        except BrokenPipeError:
            logger.debug("output closed by reader")
            self.closed = True
        else:
            self.emitted += 1

    def add_path(self, dir_path:str, is_dir:bool, metadata:Optional[FileMetadata]=None) -> None:
        key = truncate_path(dir_path, self.depth)
        if self.current is None:
            self._open(key, is_dir, metadata)
        elif key == self.current_key:
            self._accumulate(is_dir, metadata)
        else:
            # new directory! write the current one out
            self.flush()
            self._open(key, is_dir, metadata)

    def add_entry(self, entry:WalkEntry) -> None:
        self.add_path(entry.dir_path, entry.is_dir, entry.metadata)

    def close(self) -> None:
        self.flush()
