from dataclasses import dataclass, replace
from datetime import datetime, timezone
import enum
import logging
from pathlib import PurePath
from typing import Iterable, Optional

from humanfriendly import format_size, format_timespan
from humanfriendly.tables import format_pretty_table

from dirscan.directory_stat import DirectoryStat, PathParts, path_components


logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
TABLE_COLUMNS = ("Prefix", "Files", "Size", "created", "accessed", "modified")


class SortType(enum.Enum):
    NAME = "name"
    FILES = "files"
    SIZE = "size"

    def __str__(self):
        return self.value


@dataclass(slots=True)
class RollupRow:
    # ancestor path relative to the prefix
    key: PathParts
    # prefix joined with key
    path: str
    stat: DirectoryStat


def ancestor_chain(parts:PathParts, depth:int) -> Iterable[PathParts]:
    """
    Expand a path into every one of its ancestors up to depth components,
    shortest first: (a,), (a, b), (a, b, c) ...
    """
    for i in range(1, min(depth, len(parts)) + 1):
        yield parts[:i]


def rollup(
    stats:Iterable[DirectoryStat],
    prefix:str="",
    depth:int=1,
    sort:SortType=SortType.NAME,
    limit:Optional[int]=None,
) -> list[RollupRow]:
    """
    Re-aggregate previously recorded DirectoryStats under prefix.

    Each stat is merged into the bucket of every ancestor of its
    prefix-relative path from 1 up to depth components, so a single pass
    gives totals for each level at once.
    """
    if depth < 1:
        raise ValueError(f"Depth must be at least 1, got {depth!r}")
    if limit is not None and limit < 0:
        raise ValueError(f"Limit must not be negative, got {limit!r}")

    prefix_parts = path_components(prefix)
    buckets:dict[PathParts, DirectoryStat] = {}
    considered = 0
    for stat in stats:
        parts = path_components(stat.path)
        if parts[:len(prefix_parts)] != prefix_parts:
            continue
        considered += 1

        for key in ancestor_chain(parts[len(prefix_parts):], depth):
            bucket = buckets.get(key)
            if bucket is None:
                buckets[key] = replace(stat, path=str(PurePath(*prefix_parts, *key)))
            else:
                bucket.merge(stat)

    logger.debug(
        "rolled %(considered)s records under %(prefix)r into %(buckets)s buckets",
        {
            "considered": considered,
            "prefix": prefix,
            "buckets": len(buckets),
        },
    )

    rows = [RollupRow(key, stat.path, stat) for key, stat in buckets.items()]
    # sorts are stable, so ties keep insertion order
    if sort is SortType.NAME:
        rows.sort(key=lambda r: r.key)
    elif sort is SortType.SIZE:
        rows.sort(key=lambda r: -r.stat.total_size)
    elif sort is SortType.FILES:
        rows.sort(key=lambda r: -r.stat.file_count)
    else:
        raise ValueError(f"Don't know how to sort by {sort!r}")

    if limit is not None:
        del rows[limit:]

    return rows


def humanize_since(ts:Optional[datetime], now:datetime) -> str:
    if ts is None:
        return UNKNOWN
    delta = (now - ts).total_seconds()
    if delta < 0:
        return f"in {format_timespan(-delta)}"
    return f"{format_timespan(delta)} ago"


def format_rollup_table(rows:Iterable[RollupRow], now:Optional[datetime]=None) -> str:
    if now is None:
        now = datetime.now(timezone.utc)
    return format_pretty_table(
        [
            [
                row.path,
                row.stat.file_count,
                format_size(row.stat.total_size, binary=True),
                humanize_since(row.stat.latest_created, now),
                humanize_since(row.stat.latest_accessed, now),
                humanize_since(row.stat.latest_modified, now),
            ]
            for row in rows
        ],
        TABLE_COLUMNS,
    )
