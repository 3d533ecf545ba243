"""
Fuzzy schema clustering.

Groups schemas whose column names are close but not identical (``cust_id``
vs ``customer_id``), so that naming drift between systems shows up next to
the exact-hash duplicate table.

Column names are compared with Jaro-Winkler. Two schemas are compared with a
Jaccard-style ratio in which a column counts as shared when it has a fuzzy
match on the other side. Clustering is a single greedy pass in report order
and runs once, after the whole tree has been scanned.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import List, Sequence

from .models import DirectoryEntry, FuzzySimilarityGroup
from .similarity import SchemaSource, iter_schema_sources

logger = logging.getLogger(__name__)

COLUMN_MATCH_THRESHOLD = 0.8
DEFAULT_FUZZY_THRESHOLD = 0.8
WINKLER_BOOST_THRESHOLD = 0.7
WINKLER_PREFIX_WEIGHT = 0.1
WINKLER_MAX_PREFIX = 4


def _jaro(a: str, b: str) -> float:
    window = max(0, max(len(a), len(b)) // 2 - 1)
    taken = [False] * len(b)
    a_hits = []
    for i, ch in enumerate(a):
        for j in range(max(0, i - window), min(len(b), i + window + 1)):
            if not taken[j] and b[j] == ch:
                taken[j] = True
                a_hits.append(ch)
                break

    m = len(a_hits)
    if m == 0:
        return 0.0
    b_hits = [ch for ch, hit in zip(b, taken) if hit]
    half_swaps = sum(1 for x, y in zip(a_hits, b_hits) if x != y)
    return (m / len(a) + m / len(b) + (m - half_swaps / 2) / m) / 3


def _common_prefix(a: str, b: str) -> int:
    n = 0
    for x, y in zip(a[:WINKLER_MAX_PREFIX], b[:WINKLER_MAX_PREFIX]):
        if x != y:
            break
        n += 1
    return n


@lru_cache(maxsize=65536)
def jaro_winkler(a: str, b: str) -> float:
    """Jaro-Winkler similarity of two column names, in [0, 1].

    The common-prefix boost only applies when the Jaro score is above
    WINKLER_BOOST_THRESHOLD.
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    jaro = _jaro(a, b)
    if jaro <= WINKLER_BOOST_THRESHOLD:
        return jaro
    return jaro + _common_prefix(a, b) * WINKLER_PREFIX_WEIGHT * (1.0 - jaro)


def _matched_count(left: Sequence[str], right: Sequence[str]) -> int:
    """How many names in ``left`` have at least one fuzzy match in ``right``."""
    return sum(
        1
        for a in left
        if any(jaro_winkler(a, b) >= COLUMN_MATCH_THRESHOLD for b in right)
    )


def column_set_similarity(left: Sequence[str], right: Sequence[str]) -> float:
    """
    Fuzzy Jaccard ratio between two column sets.

    Matches are counted from the smaller set (both directions when the sizes
    are equal, keeping the lower count) and divided by the fuzzy union
    ``|A| + |B| - matches``. The result does not depend on argument order.
    """
    a = list(dict.fromkeys(left))
    b = list(dict.fromkeys(right))
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0

    if len(a) < len(b):
        matches = _matched_count(a, b)
    elif len(b) < len(a):
        matches = _matched_count(b, a)
    else:
        matches = min(_matched_count(a, b), _matched_count(b, a))

    return matches / (len(a) + len(b) - matches)


def cluster_schemas(
    schemas: Sequence[SchemaSource], threshold: float
) -> List[FuzzySimilarityGroup]:
    if threshold <= 0 or len(schemas) < 2:
        return []

    used = [False] * len(schemas)
    groups: List[FuzzySimilarityGroup] = []
    for i, seed in enumerate(schemas):
        if used[i]:
            continue
        used[i] = True
        members = [seed]
        for j in range(i + 1, len(schemas)):
            if used[j]:
                continue
            if column_set_similarity(seed.columns, schemas[j].columns) >= threshold:
                members.append(schemas[j])
                used[j] = True

        if len(members) < 2:
            continue
        # Pure exact duplicates already live in the column similarity table.
        if len({m.schema_hash for m in members}) == 1:
            continue

        columns = sorted({c for m in members for c in m.shown})
        groups.append(
            FuzzySimilarityGroup(
                group_id=len(groups),
                similarity_score=threshold,
                representative_columns=columns,
                sources=[m.source for m in members],
            )
        )

    logger.debug("[fuzzy] %d schemas -> %d groups", len(schemas), len(groups))
    return groups


def build_fuzzy_similarity_groups(
    directories: Sequence[DirectoryEntry], threshold: float = DEFAULT_FUZZY_THRESHOLD
) -> List[FuzzySimilarityGroup]:
    """Cluster every schema in the scan; threshold 0 turns clustering off."""
    return cluster_schemas(list(iter_schema_sources(directories)), threshold)
