"""
app/mappers/role_detector.py

Name-based semantic role detection for uploaded columns.

Each rule table is an ordered list of ``(predicate, role)`` pairs evaluated
top to bottom; the first predicate that matches the lower-cased column name
decides the role.  Order is the tie-break policy, so e.g. ``user_level``
resolves to ``user_id`` only if it also mentions ``id``, otherwise ``level``.
"""

from __future__ import annotations

import re
from typing import Callable, Sequence

from app.domain.analytics import ColumnRole, ColumnStats, MappingRole


NamePredicate = Callable[[str], bool]
RoleRule = tuple[NamePredicate, ColumnRole]

_RETENTION_DAY_PATTERN = re.compile(r"d\d+|day_?\d+")

SOURCE_KEYWORDS: tuple[str, ...] = ("source", "channel", "utm")


def contains(*keywords: str) -> NamePredicate:
    """Match when any keyword is a substring of the name."""
    return lambda name: any(keyword in name for keyword in keywords)


def equals(*names: str) -> NamePredicate:
    """Match when the name is exactly one of ``names``."""
    return lambda name: name in names


def all_of(*predicates: NamePredicate) -> NamePredicate:
    return lambda name: all(predicate(name) for predicate in predicates)


def any_of(*predicates: NamePredicate) -> NamePredicate:
    return lambda name: any(predicate(name) for predicate in predicates)


def matches(pattern: re.Pattern[str]) -> NamePredicate:
    return lambda name: pattern.search(name) is not None


_looks_temporal = any_of(contains("date", "timestamp"), equals("time", "day"))
_looks_install = contains("created", "installed")
_looks_retention = any_of(contains("retention"), matches(_RETENTION_DAY_PATTERN))


ROLE_RULES: tuple[RoleRule, ...] = (
    (any_of(all_of(contains("user"), contains("id")), equals("uid", "player_id")), ColumnRole.USER_ID),
    (_looks_install, ColumnRole.INSTALL_DATE),
    (_looks_temporal, ColumnRole.TIMESTAMP),
    (_looks_retention, ColumnRole.RETENTION),
    (contains("cohort"), ColumnRole.COHORT),
    (contains("event", "action"), ColumnRole.EVENT),
    (contains("level", "stage"), ColumnRole.LEVEL),
    (contains("session"), ColumnRole.SESSION),
    (contains("revenue", "price", "amount"), ColumnRole.REVENUE),
    (contains("purchase", "transaction"), ColumnRole.PURCHASE),
    (contains("iap", "ltv"), ColumnRole.LTV),
    (contains("duration", "time_spent", "playtime"), ColumnRole.DURATION),
    (contains("count", "frequency"), ColumnRole.COUNT),
    (contains("country", "region"), ColumnRole.GEO),
    (contains("platform", "device"), ColumnRole.PLATFORM),
    (contains("segment", "tier", "group"), ColumnRole.SEGMENT),
)
"""Heuristic cascade used when no external mapping exists for a column."""

METRIC_RULES: tuple[RoleRule, ...] = (
    (contains("revenue", "amount", "price"), ColumnRole.REVENUE),
    (contains("level", "stage"), ColumnRole.LEVEL),
    (contains("session", "duration"), ColumnRole.DURATION),
    (_looks_retention, ColumnRole.RETENTION),
)
"""Refinement of columns mapped as ``metric``; falls back to ``ROLE_RULES``."""

DIMENSION_RULES: tuple[RoleRule, ...] = (
    (contains("country", "region"), ColumnRole.GEO),
    (contains("platform", "device"), ColumnRole.PLATFORM),
    (contains("event", "action"), ColumnRole.EVENT),
    (contains("source", "channel"), ColumnRole.SOURCE),
)
"""Refinement of columns mapped as ``dimension``; defaults to ``segment``."""

TIMESTAMP_RULES: tuple[RoleRule, ...] = (
    (contains("install", "created"), ColumnRole.INSTALL_DATE),
)
"""Refinement of columns mapped as ``timestamp``; defaults to ``timestamp``."""


def apply_rules(name: str, rules: Sequence[RoleRule]) -> ColumnRole | None:
    """
    Return the role of the first matching rule, or None when nothing matches.
    """

    lowered = name.lower()
    for predicate, role in rules:
        if predicate(lowered):
            return role
    return None


def detect_column_role(column: str, stats: ColumnStats | None = None) -> ColumnRole:
    """
    Infer a column's role from its name alone.

    ``stats`` is accepted so callers can pass what they have; the cascade
    does not consult it today.
    """

    return apply_rules(column, ROLE_RULES) or ColumnRole.UNKNOWN


def resolve_mapped_role(
    mapping_role: MappingRole | str,
    column: str,
    stats: ColumnStats | None = None,
) -> ColumnRole:
    """
    Translate an external coarse mapping into a concrete role.
    """

    role = MappingRole(mapping_role)

    if role is MappingRole.IDENTIFIER:
        return ColumnRole.USER_ID
    if role is MappingRole.TIMESTAMP:
        return apply_rules(column, TIMESTAMP_RULES) or ColumnRole.TIMESTAMP
    if role is MappingRole.METRIC:
        return apply_rules(column, METRIC_RULES) or detect_column_role(column, stats)
    if role is MappingRole.DIMENSION:
        return apply_rules(column, DIMENSION_RULES) or ColumnRole.SEGMENT
    if role is MappingRole.NOISE:
        return ColumnRole.UNKNOWN
    return detect_column_role(column, stats)
