"""Turns request query parameters into filters and filters into MongoDB queries."""
import logging
from datetime import tzinfo
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

import config
from models.errors import InvalidFilterError
from models.filters import ALL, AllFilter, ByDate, ByDateRange, ByType, Combined, Filter
from models.transaction import TRANSACTION_TYPES
from utils.dates import (
    end_of_day,
    is_date_only,
    parse_calendar_date,
    parse_datetime,
    start_of_day,
    start_of_next_day,
)

logger = logging.getLogger(__name__)

TYPE_ALL = 'all'


def _present(value: Optional[str]) -> bool:
    return value is not None and value.strip() != ''


def _type_filter(type_: Optional[str]) -> Optional[ByType]:
    if not _present(type_):
        return None
    value = type_.strip()
    if value == TYPE_ALL:
        return None
    if value not in TRANSACTION_TYPES:
        raise InvalidFilterError('type', f"Unknown transaction type '{value}'")
    return ByType(type=value)


def _combine(filters: List[Any]) -> Filter:
    if not filters:
        return ALL
    if len(filters) == 1:
        return filters[0]
    return Combined(filters=filters)


def build_search_filter(
    date: Optional[str] = None,
    type: Optional[str] = None,
    tz: Optional[tzinfo] = None,
) -> Filter:
    """Filter for a single calendar day and/or a transaction type.

    The day is the half-open interval ``[day 00:00, next day 00:00)`` in the
    reference time zone.
    """
    tz = tz or config.REFERENCE_TZ
    filters: List[Any] = []

    if _present(date):
        try:
            day = parse_calendar_date(date, tz)
            start, end = start_of_day(day, tz), start_of_next_day(day, tz)
        except (ValueError, OverflowError) as e:
            raise InvalidFilterError('date', f"Invalid date '{date}'") from e
        filters.append(ByDate(day=day, start=start, end=end))

    type_filter = _type_filter(type)
    if type_filter is not None:
        filters.append(type_filter)

    return _combine(filters)


def _range_bound(param: str, value: str, tz: tzinfo, end: bool):
    try:
        if is_date_only(value):
            day = parse_calendar_date(value, tz)
            return end_of_day(day, tz) if end else start_of_day(day, tz)
        return parse_datetime(value, tz)
    except (ValueError, OverflowError) as e:
        raise InvalidFilterError(param, f"Invalid date '{value}'") from e


def build_export_filter(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    type: Optional[str] = None,
    tz: Optional[tzinfo] = None,
) -> Filter:
    """Filter for an inclusive date range and/or a transaction type.

    A date-only ``end_date`` covers that whole day, so ``start_date == end_date``
    selects one calendar day.
    """
    tz = tz or config.REFERENCE_TZ
    filters: List[Any] = []

    start = _range_bound('startDate', start_date, tz, end=False) if _present(start_date) else None
    end = _range_bound('endDate', end_date, tz, end=True) if _present(end_date) else None
    if start is not None or end is not None:
        try:
            filters.append(ByDateRange(start=start, end=end))
        except PydanticValidationError as e:
            raise InvalidFilterError('startDate', "startDate must not be after endDate") from e

    type_filter = _type_filter(type)
    if type_filter is not None:
        filters.append(type_filter)

    return _combine(filters)


def _criterion(filter_: Filter) -> Dict[str, Any]:
    if isinstance(filter_, ByDate):
        return {'date': {'$gte': filter_.start, '$lt': filter_.end}}
    if isinstance(filter_, ByDateRange):
        bounds = {}
        if filter_.start is not None:
            bounds['$gte'] = filter_.start
        if filter_.end is not None:
            bounds['$lte'] = filter_.end
        return {'date': bounds}
    if isinstance(filter_, ByType):
        return {'type': filter_.type}
    raise TypeError(f"Unsupported filter: {filter_!r}")


def to_mongo_query(filter_: Filter) -> Dict[str, Any]:
    """Translate a filter into a MongoDB query document."""
    if isinstance(filter_, AllFilter):
        return {}
    if not isinstance(filter_, Combined):
        return _criterion(filter_)

    criteria = [_criterion(f) for f in filter_.filters]
    keys = [key for criterion in criteria for key in criterion]
    if len(keys) != len(set(keys)):
        return {'$and': criteria}
    query: Dict[str, Any] = {}
    for criterion in criteria:
        query.update(criterion)
    return query
