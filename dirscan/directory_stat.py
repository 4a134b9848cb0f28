from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import PurePath
from typing import Optional


PathParts = tuple[str,...]


def path_components(path:str) -> PathParts:
    if not path:
        return ()
    return PurePath(path).parts


def truncate_path(path:str, depth:Optional[int]) -> PathParts:
    parts = path_components(path)
    if depth is None:
        return parts
    return parts[:depth]


def update_latest(current:Optional[datetime], ts:Optional[datetime]) -> Optional[datetime]:
    if ts is None:
        return current
    if current is None or current < ts:
        return ts
    return current


# None loses to any value, making it the identity for the max-merge
max_option = update_latest


@dataclass(slots=True)
class DirectoryStat:
    path: str = ""
    file_count: int = 0
    total_size: int = 0
    largest_file_size: int = 0
    latest_created:Optional[datetime] = None
    latest_accessed:Optional[datetime] = None
    latest_modified:Optional[datetime] = None

    @classmethod
    def for_file(
        cls,
        path:str,
        size:int,
        created:Optional[datetime]=None,
        accessed:Optional[datetime]=None,
        modified:Optional[datetime]=None,
    ) -> "DirectoryStat":
        return cls(
            path=path,
            file_count=1,
            total_size=size,
            largest_file_size=size,
            latest_created=created,
            latest_accessed=accessed,
            latest_modified=modified,
        )

    def accumulate_file(
        self,
        size:int,
        created:Optional[datetime]=None,
        accessed:Optional[datetime]=None,
        modified:Optional[datetime]=None,
    ) -> "DirectoryStat":
        self.file_count += 1
        self.total_size += size
        self.largest_file_size = max(self.largest_file_size, size)
        self.latest_created = update_latest(self.latest_created, created)
        self.latest_accessed = update_latest(self.latest_accessed, accessed)
        self.latest_modified = update_latest(self.latest_modified, modified)
        return self

    def merge(self, other:"DirectoryStat") -> "DirectoryStat":
        """
        Merge another DirectoryStat into this one, keeping this one's path.
        """
        self.file_count += other.file_count
        self.total_size += other.total_size
        self.largest_file_size = max(self.largest_file_size, other.largest_file_size)
        self.latest_created = max_option(self.latest_created, other.latest_created)
        self.latest_accessed = max_option(self.latest_accessed, other.latest_accessed)
        self.latest_modified = max_option(self.latest_modified, other.latest_modified)
        return self


def merge_stats(a:DirectoryStat, b:DirectoryStat) -> DirectoryStat:
    return replace(a).merge(b)
