from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, datetime, timezone
import logging
import os
import queue
import threading
from typing import Iterator, Optional

from dirscan.naive_executor import NaiveExecutor


logger = logging.getLogger(__name__)

# Sometimes there are weird dates, like 2098-01-01. Just filter them out here.
BLACKLISTED_DATES = frozenset((date(2098, 1, 1),))

DEFAULT_QUEUE_SIZE = 4096


@dataclass(slots=True)
class FileMetadata:
    size: int
    created:Optional[datetime] = None
    accessed:Optional[datetime] = None
    modified:Optional[datetime] = None


@dataclass(slots=True)
class WalkEntry:
    # the directory itself for directories, the containing directory for files
    dir_path: str
    is_dir: bool
    metadata:Optional[FileMetadata] = None


class _Done:
    pass


def _timestamp(st:os.stat_result, attr:str) -> Optional[datetime]:
    value = getattr(st, attr, None)
    if value is None:
        return None
    try:
        ts = datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
    if ts.date() in BLACKLISTED_DATES:
        return None
    return ts


def metadata_from_stat(st:os.stat_result, is_dir:bool, actual_size:bool=False) -> FileMetadata:
    if is_dir:
        size = 0
    elif actual_size:
        blocks = getattr(st, "st_blocks", None)
        size = st.st_size if blocks is None else blocks * 512
    else:
        size = st.st_size

    return FileMetadata(
        size=size,
        # st_ctime is inode change time on unix, not creation
        created=_timestamp(st, "st_birthtime"),
        accessed=_timestamp(st, "st_atime"),
        modified=_timestamp(st, "st_mtime"),
    )


class Walker:
    def __init__(
        self,
        threads:int,
        actual_size:bool=False,
        skip_hidden:bool=False,
        sort_children:bool=True,
        queue_size:int=DEFAULT_QUEUE_SIZE,
    ):
        if threads < 0:
            raise ValueError("Negative values for threads argument make no sense")
        self.threads = threads
        self.actual_size = actual_size
        self.skip_hidden = skip_hidden
        self.sort_children = sort_children
        self.queue_size = queue_size

    def _make_executor(self) -> Executor:
        if self.threads == 0:
            return NaiveExecutor()
        return ThreadPoolExecutor(max_workers=self.threads)

    def _child_info(self, direntry:os.DirEntry) -> tuple[str, bool, Optional[FileMetadata]]:
        try:
            is_dir = direntry.is_dir(follow_symlinks=False)
            st = direntry.stat(follow_symlinks=False)
        except OSError as e:
            logger.debug("unable to stat %s: %s", direntry.path, e)
            return direntry.path, False, None
        return direntry.path, is_dir, metadata_from_stat(st, is_dir, self.actual_size)

    def _list_children(self, path:str, executor:Executor):
        with os.scandir(path) as it:
            direntries = [
                d for d in it
                if not (self.skip_hidden and d.name.startswith("."))
            ]
        children = list(executor.map(self._child_info, direntries))
        if self.sort_children:
            # files come first, then directories after
            children.sort(key=lambda c: (c[1], os.path.basename(c[0])))
        return children

    def _walk(self, root:str, executor:Executor, put) -> None:
        try:
            root_metadata = metadata_from_stat(os.stat(root), True)
        except OSError as e:
            logger.debug("unable to stat %s: %s", root, e)
            root_metadata = None

        stack = [(root, root_metadata)]
        while stack:
            path, metadata = stack.pop()
            try:
                children = self._list_children(path, executor)
            except OSError as e:
                logger.debug("unable to read directory %s: %s", path, e)
                if not put(WalkEntry(path, True, None)):
                    return
                continue

            if not put(WalkEntry(path, True, metadata)):
                return

            subdirs = []
            for child_path, is_dir, child_metadata in children:
                if is_dir:
                    subdirs.append((child_path, child_metadata))
                elif not put(WalkEntry(path, False, child_metadata)):
                    return

            stack.extend(reversed(subdirs))

    def _produce(self, root:str, entries:queue.Queue, stop:threading.Event) -> None:
        def put(item) -> bool:
            # block on a full queue rather than drop anything, but give up
            # once the consumer has gone away
            while not stop.is_set():
                try:
                    entries.put(item, timeout=0.1)
                    return True
                except queue.Full:
                    continue
            return False

        try:
            with self._make_executor() as executor:
                self._walk(root, executor, put)
        except Exception as e:
            put(e)
        else:
            put(_Done)

    def walk_dir(self, root) -> Iterator[WalkEntry]:
        root = os.fspath(root)
        entries = queue.Queue(maxsize=self.queue_size)
        stop = threading.Event()
        producer = threading.Thread(
            target=self._produce,
            args=(root, entries, stop),
            name="dirscan-walker",
            daemon=True,
        )
        producer.start()
        try:
            while True:
                item = entries.get()
                if item is _Done:
                    return
                if isinstance(item, Exception):
                    raise item
                yield item
        finally:
            stop.set()
            producer.join()
