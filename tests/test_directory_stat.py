from dataclasses import replace
from datetime import datetime, timedelta, timezone
from functools import reduce
import itertools

import pytest

from dirscan.directory_stat import (
    DirectoryStat,
    max_option,
    merge_stats,
    path_components,
    truncate_path,
    update_latest,
)


T0 = datetime(2020, 5, 17, 12, 30, 0, 123456, tzinfo=timezone.utc)

SAMPLES = (
    DirectoryStat(),
    DirectoryStat(
        path="a",
        file_count=3,
        total_size=300,
        largest_file_size=200,
        latest_created=T0,
        latest_accessed=None,
        latest_modified=T0 + timedelta(days=1),
    ),
    DirectoryStat(
        path="b",
        file_count=1,
        total_size=7,
        largest_file_size=7,
        latest_created=None,
        latest_accessed=T0 + timedelta(hours=3),
        latest_modified=T0 - timedelta(days=10),
    ),
    DirectoryStat(
        path="c",
        file_count=12,
        total_size=12_000_000,
        largest_file_size=9_000_000,
        latest_created=T0 + timedelta(seconds=1),
        latest_accessed=T0,
        latest_modified=None,
    ),
)


def _summary_equals(a, b):
    # everything but the path
    return replace(a, path="") == replace(b, path="")


@pytest.mark.parametrize("ts,current,expected", (
    (None, None, None),
    (T0, None, T0),
    (None, T0, T0),
    (T0, T0 + timedelta(1), T0 + timedelta(1)),
    (T0 + timedelta(1), T0, T0 + timedelta(1)),
))
def test_update_latest(ts, current, expected):
    assert update_latest(current, ts) == expected
    assert max_option(ts, current) == expected


@pytest.mark.parametrize("a,b", list(itertools.product(SAMPLES, repeat=2)))
def test_merge_commutative(a, b):
    assert _summary_equals(merge_stats(a, b), merge_stats(b, a))


@pytest.mark.parametrize("a,b,c", list(itertools.product(SAMPLES, repeat=3)))
def test_merge_associative(a, b, c):
    left = merge_stats(merge_stats(a, b), c)
    right = merge_stats(a, merge_stats(b, c))
    assert _summary_equals(left, right)


@pytest.mark.parametrize("x", SAMPLES)
def test_merge_identity(x):
    assert merge_stats(x, DirectoryStat()) == x
    assert _summary_equals(merge_stats(DirectoryStat(), x), x)


def test_merge_stats_leaves_inputs_alone():
    a, b = SAMPLES[1], SAMPLES[2]
    merged = merge_stats(a, b)
    assert merged.path == "a"
    assert merged.file_count == 4
    assert merged.total_size == 307
    assert merged.largest_file_size == 200
    assert merged.latest_created == T0
    assert merged.latest_accessed == T0 + timedelta(hours=3)
    assert merged.latest_modified == T0 + timedelta(days=1)
    assert a.file_count == 3
    assert b.file_count == 1


def test_accumulate_file_equivalent_to_merge():
    files = (
        (10, T0, T0, T0),
        (250, None, T0 + timedelta(1), None),
        (0, T0 - timedelta(1), None, T0 + timedelta(2)),
    )
    accumulated = DirectoryStat(path="d")
    for f in files:
        accumulated.accumulate_file(*f)

    merged = reduce(
        merge_stats,
        (DirectoryStat.for_file("d", *f) for f in files),
        DirectoryStat(path="d"),
    )
    assert accumulated == merged
    assert accumulated.file_count == 3
    assert accumulated.total_size == 260
    assert accumulated.largest_file_size == 250


def test_missing_accessed_still_counts():
    stat = DirectoryStat(path="d")
    stat.accumulate_file(42, created=T0, accessed=None, modified=T0)
    assert stat.file_count == 1
    assert stat.total_size == 42
    assert stat.latest_accessed is None
    assert stat.latest_created == T0
    assert stat.latest_modified == T0


def test_merge_never_decreases():
    stat = DirectoryStat.for_file("d", 5, T0, T0, T0)
    stat.merge(DirectoryStat.for_file("d", 1, T0 - timedelta(1), None, T0 - timedelta(1)))
    assert stat.file_count == 2
    assert stat.total_size == 6
    assert stat.largest_file_size == 5
    assert stat.latest_created == T0
    assert stat.latest_accessed == T0
    assert stat.latest_modified == T0


@pytest.mark.parametrize("path,depth,expected", (
    ("a/b/c", None, ("a", "b", "c")),
    ("a/b/c", 2, ("a", "b")),
    ("a/b/c", 5, ("a", "b", "c")),
    ("/srv/data", 1, ("/",)),
    ("/srv/data", 2, ("/", "srv")),
    ("", None, ()),
))
def test_truncate_path(path, depth, expected):
    assert truncate_path(path, depth) == expected


def test_path_components_is_component_wise():
    assert path_components("foo/bar") != path_components("foo/barbaz")[:2]
    assert path_components("foo//bar/") == ("foo", "bar")
