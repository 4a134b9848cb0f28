import logging
import time

from humanfriendly import format_size, format_timespan
from humanfriendly.tables import format_pretty_table

from dirscan.fs import WalkEntry


logger = logging.getLogger(__name__)

UPDATE_FREQUENCY = 0.5


class WalkProgress:
    def __init__(self, root:str, update_frequency:float=UPDATE_FREQUENCY):
        self.root = root
        self.update_frequency = update_frequency
        self.errors = 0
        self.total = 0
        self.total_size = 0
        self.started = time.monotonic()
        self.last_update = self.started

    def record_progress(self, entry:WalkEntry) -> None:
        self.total += 1
        if entry.metadata is None:
            self.errors += 1
        else:
            self.total_size += entry.metadata.size

    def should_update(self) -> bool:
        return time.monotonic() - self.last_update > self.update_frequency

    def update(self) -> None:
        self.last_update = time.monotonic()
        logger.info(
            "entries: %(total)s | size: %(size)s | errors: %(errors)s",
            {
                "total": self.total,
                "size": format_size(self.total_size, binary=True),
                "errors": self.errors,
            },
        )

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started

    def __str__(self):
        return format_pretty_table([
            ["Root", self.root],
            ["Total Size", format_size(self.total_size, binary=True)],
            ["Entries", self.total],
            ["Duration", format_timespan(self.elapsed, detailed=True)],
            ["Errors", self.errors],
        ])
