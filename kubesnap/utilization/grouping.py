"""Aggregation of ledger rows by a caller-supplied qualifier list."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from kubesnap.models.utilization import (
    MEASURES,
    AggregatedUtilization,
    Qualifier,
    ResourceSample,
    SampleKey,
    add_measure,
)

GroupKey = tuple[str | None, ...]


def _sort_token(key: GroupKey) -> tuple[tuple[bool, str], ...]:
    # Unknown (None) values sort before known ones.
    return tuple((v is not None, v or "") for v in key)


def aggregate(rows: Iterable[ResourceSample], qualifiers: Sequence[Qualifier]) -> list[AggregatedUtilization]:
    """Bucket *rows* by their projection onto *qualifiers* and sum each measure.

    Every row lands in exactly one bucket. An empty qualifier list yields a
    single global bucket (or nothing when there are no rows). Buckets are
    returned sorted by qualifier values; totals do not depend on input order.
    """
    qualifiers = tuple(qualifiers)
    buckets: dict[GroupKey, AggregatedUtilization] = {}
    members: dict[GroupKey, list[SampleKey]] = {}
    for row in rows:
        key = tuple(row.value_of(q) for q in qualifiers)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = AggregatedUtilization(group=tuple(zip(qualifiers, key, strict=True)), depth=len(qualifiers))
            buckets[key] = bucket
            members[key] = []
        for measure in MEASURES:
            setattr(bucket, measure, add_measure(getattr(bucket, measure), getattr(row, measure)))
        members[key].append(row.key)

    result = []
    for key in sorted(buckets, key=_sort_token):
        bucket = buckets[key]
        bucket.members = tuple(sorted(members[key]))
        result.append(bucket)
    return result


def rollup(rows: Iterable[ResourceSample], qualifiers: Sequence[Qualifier]) -> list[AggregatedUtilization]:
    """Tree-ordered subtotals for every prefix of *qualifiers*.

    The first row (depth 0) is the grand total; each bucket is followed by
    its children one level deeper. Leaf rows equal ``aggregate(rows, qualifiers)``.
    """
    rows = list(rows)
    if not rows:
        return []
    qualifiers = tuple(qualifiers)
    levels: list[AggregatedUtilization] = []
    for depth in range(len(qualifiers) + 1):
        levels.extend(aggregate(rows, qualifiers[:depth]))
    return sorted(levels, key=lambda b: _sort_token(tuple(v for _, v in b.group)))
