"""Tests for filter construction and MongoDB query translation."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError as PydanticValidationError

from models.errors import InvalidFilterError
from models.filters import ALL, AllFilter, ByDate, ByDateRange, ByType, Combined
from services.query_builder import build_export_filter, build_search_filter, to_mongo_query


UTC = timezone.utc


def test_no_parameters_match_everything():
    assert build_search_filter(tz=UTC) == ALL
    assert build_export_filter(tz=UTC) == ALL
    assert to_mongo_query(ALL) == {}


def test_empty_parameters_are_ignored():
    assert build_search_filter(date="", type="  ", tz=UTC) == ALL
    assert build_export_filter(start_date="", end_date="", type="", tz=UTC) == ALL


def test_single_date_is_a_half_open_day():
    filter_ = build_search_filter(date="2023-10-01", tz=UTC)

    assert isinstance(filter_, ByDate)
    assert filter_.day == date(2023, 10, 1)
    assert to_mongo_query(filter_) == {
        "date": {
            "$gte": datetime(2023, 10, 1, tzinfo=UTC),
            "$lt": datetime(2023, 10, 2, tzinfo=UTC),
        }
    }


def test_single_date_uses_reference_time_zone():
    filter_ = build_search_filter(date="2023-10-01", tz=ZoneInfo("Europe/Paris"))

    assert filter_.start == datetime(2023, 9, 30, 22, 0, tzinfo=UTC)
    assert filter_.end == datetime(2023, 10, 1, 22, 0, tzinfo=UTC)


def test_single_date_spanning_dst_change_is_23_hours():
    filter_ = build_search_filter(date="2024-03-31", tz=ZoneInfo("Europe/Paris"))

    assert (filter_.end - filter_.start).total_seconds() == 23 * 3600


def test_single_date_accepts_full_timestamp():
    filter_ = build_search_filter(date="2023-10-01T15:30:00Z", tz=UTC)

    assert filter_.day == date(2023, 10, 1)


def test_type_filter():
    assert build_search_filter(type="expense", tz=UTC) == ByType(type="expense")
    assert to_mongo_query(ByType(type="expense")) == {"type": "expense"}


def test_type_all_is_no_restriction():
    assert build_search_filter(type="all", tz=UTC) == ALL
    assert build_export_filter(type="all", tz=UTC) == ALL


def test_unknown_type_is_rejected():
    with pytest.raises(InvalidFilterError) as exc_info:
        build_search_filter(type="transfer", tz=UTC)

    assert exc_info.value.param == "type"


@pytest.mark.parametrize("value", ["not-a-date", "2023-13-01", "2023-02-30"])
def test_malformed_search_date_is_rejected(value):
    with pytest.raises(InvalidFilterError) as exc_info:
        build_search_filter(date=value, tz=UTC)

    assert exc_info.value.param == "date"


def test_date_and_type_are_combined():
    filter_ = build_search_filter(date="2023-10-01", type="income", tz=UTC)

    assert isinstance(filter_, Combined)
    query = to_mongo_query(filter_)
    assert query["type"] == "income"
    assert query["date"]["$lt"] == datetime(2023, 10, 2, tzinfo=UTC)


def test_range_with_same_day_covers_whole_day_inclusively():
    filter_ = build_export_filter(start_date="2023-10-01", end_date="2023-10-01", tz=UTC)

    assert isinstance(filter_, ByDateRange)
    assert to_mongo_query(filter_) == {
        "date": {
            "$gte": datetime(2023, 10, 1, tzinfo=UTC),
            "$lte": datetime(2023, 10, 1, 23, 59, 59, 999000, tzinfo=UTC),
        }
    }


def test_range_with_timestamps_uses_them_as_given():
    filter_ = build_export_filter(
        start_date="2023-10-01T08:00:00Z", end_date="2023-10-01T18:00:00Z", tz=UTC
    )

    assert filter_.start == datetime(2023, 10, 1, 8, tzinfo=UTC)
    assert filter_.end == datetime(2023, 10, 1, 18, tzinfo=UTC)


def test_range_may_be_open_ended():
    assert to_mongo_query(build_export_filter(start_date="2023-10-01", tz=UTC)) == {
        "date": {"$gte": datetime(2023, 10, 1, tzinfo=UTC)}
    }
    assert to_mongo_query(build_export_filter(end_date="2023-10-01", tz=UTC)) == {
        "date": {"$lte": datetime(2023, 10, 1, 23, 59, 59, 999000, tzinfo=UTC)}
    }


def test_inverted_range_is_rejected():
    with pytest.raises(InvalidFilterError):
        build_export_filter(start_date="2023-10-02", end_date="2023-10-01", tz=UTC)


@pytest.mark.parametrize("param, kwargs", [
    ("startDate", {"start_date": "garbage"}),
    ("endDate", {"end_date": "10/01/2023"}),
])
def test_malformed_range_date_is_rejected(param, kwargs):
    with pytest.raises(InvalidFilterError) as exc_info:
        build_export_filter(tz=UTC, **kwargs)

    assert exc_info.value.param == param


def test_range_and_type_are_combined():
    query = to_mongo_query(
        build_export_filter(start_date="2023-10-01", end_date="2023-10-31", type="expense", tz=UTC)
    )

    assert query["type"] == "expense"
    assert set(query["date"]) == {"$gte", "$lte"}


def test_combined_criteria_on_same_field_use_and():
    day = ByDate(
        day=date(2023, 10, 1),
        start=datetime(2023, 10, 1, tzinfo=UTC),
        end=datetime(2023, 10, 2, tzinfo=UTC),
    )
    window = ByDateRange(start=datetime(2023, 10, 1, 6, tzinfo=UTC))

    query = to_mongo_query(Combined(filters=[day, window]))

    assert list(query) == ["$and"]
    assert len(query["$and"]) == 2


def test_filters_validate_on_construction():
    with pytest.raises(PydanticValidationError):
        ByDateRange()
    with pytest.raises(PydanticValidationError):
        ByDateRange(start=datetime(2023, 10, 2, tzinfo=UTC), end=datetime(2023, 10, 1, tzinfo=UTC))
    with pytest.raises(PydanticValidationError):
        ByType(type="transfer")
    with pytest.raises(PydanticValidationError):
        Combined(filters=[ByType(type="income")])


def test_all_filter_is_its_own_variant():
    assert isinstance(ALL, AllFilter)
    assert ALL.kind == "all"


def test_last_representable_day_search_is_rejected():
    with pytest.raises(InvalidFilterError) as exc_info:
        build_search_filter(date="9999-12-31", tz=UTC)

    assert exc_info.value.param == "date"


def test_first_representable_day_shifted_by_zone_is_rejected():
    with pytest.raises(InvalidFilterError) as exc_info:
        build_search_filter(date="0001-01-01", tz=ZoneInfo("Europe/Paris"))

    assert exc_info.value.param == "date"


def test_range_ending_on_last_representable_day():
    filter_ = build_export_filter(end_date="9999-12-31", tz=UTC)

    assert filter_.end == datetime(9999, 12, 31, 23, 59, 59, 999000, tzinfo=UTC)


def test_range_bound_out_of_range_is_rejected():
    with pytest.raises(InvalidFilterError) as exc_info:
        build_export_filter(start_date="0001-01-01", tz=ZoneInfo("Europe/Paris"))

    assert exc_info.value.param == "startDate"
