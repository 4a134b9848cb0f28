import logging
import os
import sys
from typing import IO, Optional

from humanfriendly import format_size

from dirscan.formats import Format
from dirscan.fs import Walker
from dirscan.grouper import StreamGrouper
from dirscan.progress import WalkProgress
from dirscan.rollup import RollupRow, SortType, format_rollup_table, rollup

logger = logging.getLogger(__name__)

OUTPUT_BUFFER_SIZE = 1024 * 1024


def _default_threads() -> int:
    return (os.cpu_count() or 1) * 2


def scan(
    root,
    output=None,
    format:Format=Format.JSON,
    threads:Optional[int]=None,
    ignore_hidden:bool=False,
    actual_size:bool=False,
    depth:Optional[int]=None,
) -> WalkProgress:
    root = os.fspath(root)
    if not os.path.isdir(root):
        raise NotADirectoryError(f"Not a directory: {root!r}")

    if threads is None:
        threads = _default_threads()

    walker = Walker(
        threads=threads,
        actual_size=actual_size,
        skip_hidden=ignore_hidden,
    )

    if output is None:
        out_file = None
        stream = sys.stdout
    else:
        out_file = stream = open(
            output,
            "w",
            newline="",
            encoding="utf-8",
            buffering=OUTPUT_BUFFER_SIZE,
        )

    logger.info("scanning %s using %s threads", root, threads)
    walk_progress = WalkProgress(root)
    try:
        with StreamGrouper(format.get_writer(stream), depth=depth) as grouper:
            entries = walker.walk_dir(root)
            try:
                for entry in entries:
                    walk_progress.record_progress(entry)
                    if walk_progress.should_update():
                        walk_progress.update()

                    grouper.add_entry(entry)
                    if grouper.closed:
                        logger.info("output closed, stopping scan")
                        break
            finally:
                entries.close()
        if not grouper.closed:
            try:
                stream.flush()
            except BrokenPipeError:
                logger.debug("output closed by reader")
    finally:
        if out_file is not None:
            out_file.close()

    logger.info(
        "wrote %(records)s records, %(entries)s entries, total size %(size)s, %(errors)s errors",
        {
            "records": grouper.emitted,
            "entries": walk_progress.total,
            "size": format_size(walk_progress.total_size, binary=True),
            "errors": walk_progress.errors,
        },
    )
    return walk_progress


def parse(
    input,
    depth:int=1,
    prefix:str="",
    format:Format=Format.JSON,
    sort:SortType=SortType.NAME,
    limit:Optional[int]=None,
    out:Optional[IO[str]]=None,
) -> list[RollupRow]:
    if out is None:
        out = sys.stdout

    with open(input, "r", newline="", encoding="utf-8") as f:
        rows = rollup(
            format.parse_file(f),
            prefix=prefix,
            depth=depth,
            sort=sort,
            limit=limit,
        )

    try:
        print(format_rollup_table(rows), file=out)
        out.flush()
    except BrokenPipeError:
        logger.debug("output closed by reader")

    return rows
