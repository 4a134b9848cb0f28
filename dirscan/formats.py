import abc
import csv
from datetime import datetime
import enum
import io
import json
from typing import IO, Iterator, Optional

from dirscan.directory_stat import DirectoryStat


FIELD_NAMES = (
    "total_size",
    "file_count",
    "path",
    "largest_file_size",
    "latest_created",
    "latest_accessed",
    "latest_modified",
)
REQUIRED_FIELD_NAMES = frozenset(("total_size", "file_count", "path"))
TIMESTAMP_FIELD_NAMES = ("latest_created", "latest_accessed", "latest_modified")

CSV_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"


class DecodeError(ValueError):
    def __init__(self, message:str, line:Optional[int]=None):
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
        self.line = line


def _to_int(value, field:str, line:int) -> int:
    # json gives ints, csv gives digit strings; anything else is malformed
    if isinstance(value, bool):
        raise DecodeError(f"invalid {field} {value!r}", line)
    if isinstance(value, int):
        if value < 0:
            raise DecodeError(f"negative {field} {value!r}", line)
        return value
    if isinstance(value, str) and value.isascii() and value.isdigit():
        return int(value)
    raise DecodeError(f"invalid {field} {value!r}", line)


def _stat_from_fields(fields:dict, parse_ts, line:int) -> DirectoryStat:
    missing = REQUIRED_FIELD_NAMES - fields.keys()
    if missing:
        raise DecodeError(f"missing fields {sorted(missing)}", line)

    path = fields["path"]
    if not isinstance(path, str):
        raise DecodeError(f"invalid path {path!r}", line)

    largest = fields.get("largest_file_size")
    timestamps = {}
    for name in TIMESTAMP_FIELD_NAMES:
        value = fields.get(name)
        if value is None or value == "":
            timestamps[name] = None
            continue
        try:
            ts = parse_ts(value)
        except (TypeError, ValueError):
            raise DecodeError(f"invalid {name} {value!r}", line)
        # naive timestamps can't be compared with the rest
        if ts.tzinfo is None or ts.utcoffset() is None:
            raise DecodeError(f"{name} {value!r} has no UTC offset", line)
        timestamps[name] = ts

    return DirectoryStat(
        path=path,
        file_count=_to_int(fields["file_count"], "file_count", line),
        total_size=_to_int(fields["total_size"], "total_size", line),
        largest_file_size=(
            0 if largest is None or largest == ""
            else _to_int(largest, "largest_file_size", line)
        ),
        **timestamps,
    )


class FormatWriter(abc.ABC):
    def __init__(self, stream:IO[str]):
        self.stream = stream

    @abc.abstractmethod
    def write_stat(self, stat:DirectoryStat) -> None:
        ...


class JsonWriter(FormatWriter):
    def write_stat(self, stat:DirectoryStat) -> None:
        record = {
            "total_size": stat.total_size,
            "file_count": stat.file_count,
            "path": stat.path,
            "largest_file_size": stat.largest_file_size,
        }
        for name in TIMESTAMP_FIELD_NAMES:
            ts = getattr(stat, name)
            record[name] = None if ts is None else ts.isoformat()
        # a single write per record, terminator included
        self.stream.write(json.dumps(record) + "\n")


class CsvWriter(FormatWriter):
    def __init__(self, stream:IO[str]):
        super().__init__(stream)
        self._header_written = False

    def _format_row(self, values) -> str:
        # go via a buffer so a record reaches the stream in one piece
        buf = io.StringIO()
        csv.writer(buf, lineterminator="\n").writerow(values)
        return buf.getvalue()

    def write_stat(self, stat:DirectoryStat) -> None:
        row = [
            stat.total_size,
            stat.file_count,
            stat.path,
            stat.largest_file_size,
        ]
        for name in TIMESTAMP_FIELD_NAMES:
            ts = getattr(stat, name)
            row.append("" if ts is None else ts.strftime(CSV_TIMESTAMP_FORMAT))

        text = self._format_row(row)
        if not self._header_written:
            text = self._format_row(FIELD_NAMES) + text
        self.stream.write(text)
        self._header_written = True


def parse_json_stream(stream:IO[str]) -> Iterator[DirectoryStat]:
    for lineno, line in enumerate(stream, 1):
        if not line.strip():
            continue
        try:
            fields = json.loads(line)
        except json.JSONDecodeError as e:
            raise DecodeError(f"malformed record: {e}", lineno) from e
        if not isinstance(fields, dict):
            raise DecodeError(f"expected an object, got {type(fields).__name__}", lineno)
        yield _stat_from_fields(fields, datetime.fromisoformat, lineno)


def _parse_csv_timestamp(value:str) -> datetime:
    return datetime.strptime(value, CSV_TIMESTAMP_FORMAT)


def parse_csv_stream(stream:IO[str]) -> Iterator[DirectoryStat]:
    reader = csv.reader(stream)
    try:
        header = next(reader)
    except StopIteration:
        return
    except csv.Error as e:
        raise DecodeError(f"malformed header: {e}", 1) from e

    missing = REQUIRED_FIELD_NAMES - set(header)
    if missing:
        raise DecodeError(f"header missing fields {sorted(missing)}", 1)

    while True:
        try:
            row = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            raise DecodeError(f"malformed record: {e}", reader.line_num) from e
        if not row:
            continue
        if len(row) != len(header):
            raise DecodeError(
                f"expected {len(header)} cells, got {len(row)}",
                reader.line_num,
            )
        yield _stat_from_fields(
            dict(zip(header, row)),
            _parse_csv_timestamp,
            reader.line_num,
        )


class Format(enum.Enum):
    JSON = "json"
    CSV = "csv"

    def __str__(self):
        return self.value

    def get_writer(self, stream:IO[str]) -> FormatWriter:
        if self is Format.JSON:
            return JsonWriter(stream)
        return CsvWriter(stream)

    def parse_file(self, stream:IO[str]) -> Iterator[DirectoryStat]:
        if self is Format.JSON:
            return parse_json_stream(stream)
        return parse_csv_stream(stream)
