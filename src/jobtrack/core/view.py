from __future__ import annotations

import unicodedata
from collections.abc import Callable, Sequence
from datetime import UTC, date, datetime, time
from functools import cmp_to_key
from typing import Any

from jobtrack.core.constants import STATUS_ORDER
from jobtrack.types import FilterOptions, JobApplication, SortOptions

SEARCH_FIELDS: tuple[str, ...] = (
    "company_name",
    "position",
    "company_location",
    "company_industry",
    "notes",
)
DATE_SORT_FIELDS = frozenset({"application_date", "created_at", "updated_at"})
TEXT_SORT_FIELDS = frozenset({"company_name", "status"})


def matches_search(application: JobApplication, query: str) -> bool:
    needle = query.lower()
    for field in SEARCH_FIELDS:
        value = getattr(application, field, None)
        if isinstance(value, str) and needle in value.lower():
            return True
    return False


def _member_filter(values: Sequence[str] | None, attribute: str) -> Callable[[JobApplication], bool] | None:
    if not values:
        return None
    allowed = set(values)
    return lambda application: getattr(application, attribute) in allowed


def build_predicates(filters: FilterOptions) -> list[Callable[[JobApplication], bool]]:
    predicates = [
        predicate
        for predicate in (
            _member_filter(filters.status, "status"),
            _member_filter(filters.source, "source"),
            _member_filter(filters.work_type, "work_type"),
            _member_filter(filters.industry, "company_industry"),
        )
        if predicate is not None
    ]

    date_range = filters.date_range
    if date_range is not None and date_range.from_ is not None:
        start = date_range.from_
        predicates.append(lambda application: application.application_date >= start)
    if date_range is not None and date_range.to is not None:
        end = date_range.to
        predicates.append(lambda application: application.application_date <= end)

    if filters.is_pinned is not None:
        pinned = filters.is_pinned
        predicates.append(lambda application: application.is_pinned == pinned)

    if filters.hide_rejected:
        predicates.append(lambda application: application.status != "rejected")

    return predicates


def _timestamp(value: Any) -> float | None:
    if isinstance(value, datetime):
        return (value if value.tzinfo else value.replace(tzinfo=UTC)).timestamp()
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=UTC).timestamp()
    return None


def _collation_key(value: str) -> tuple[str, str]:
    decomposed = unicodedata.normalize("NFKD", value)
    base = "".join(char for char in decomposed if not unicodedata.combining(char))
    return base.casefold(), value


def _compare_values(field: str, left: Any, right: Any) -> int:
    if field in DATE_SORT_FIELDS:
        left_ts, right_ts = _timestamp(left), _timestamp(right)
        if left_ts is None or right_ts is None:
            return 0
        return (left_ts > right_ts) - (left_ts < right_ts)

    if field in TEXT_SORT_FIELDS and isinstance(left, str) and isinstance(right, str):
        left_key, right_key = _collation_key(left), _collation_key(right)
        return (left_key > right_key) - (left_key < right_key)

    return 0


def sort_applications(applications: Sequence[JobApplication], sort: SortOptions) -> list[JobApplication]:
    """Pinned records first, then each partition ordered by the sort field."""

    def compare(left: JobApplication, right: JobApplication) -> int:
        return _compare_values(sort.field, getattr(left, sort.field, None), getattr(right, sort.field, None))

    descending = sort.order == "desc"
    key = cmp_to_key(compare)
    pinned = sorted((item for item in applications if item.is_pinned), key=key, reverse=descending)
    unpinned = sorted((item for item in applications if not item.is_pinned), key=key, reverse=descending)
    return pinned + unpinned


def derive_view(
    applications: Sequence[JobApplication],
    search_query: str = "",
    filters: FilterOptions | None = None,
    sort: SortOptions | None = None,
) -> list[JobApplication]:
    filters = filters or FilterOptions()
    sort = sort or SortOptions()

    result = list(applications)
    if search_query:
        result = [application for application in result if matches_search(application, search_query)]

    for predicate in build_predicates(filters):
        result = [application for application in result if predicate(application)]

    return sort_applications(result, sort)


def count_active_filters(filters: FilterOptions) -> int:
    return (
        len(filters.status or [])
        + len(filters.source or [])
        + len(filters.work_type or [])
        + len(filters.industry or [])
        + (1 if filters.is_pinned else 0)
    )


def group_by_status(applications: Sequence[JobApplication]) -> dict[str, list[JobApplication]]:
    columns: dict[str, list[JobApplication]] = {status: [] for status in STATUS_ORDER}
    for application in applications:
        columns[application.status].append(application)
    return columns


def pinned_count(applications: Sequence[JobApplication]) -> int:
    return sum(1 for application in applications if application.is_pinned)
