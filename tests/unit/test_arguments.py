from datetime import date, datetime, time, timezone
from enum import Enum

import pytest

from kilo import UNDEFINED, InvalidArgumentError
from kilo.arguments import (
    append_query,
    encode_form,
    encode_query,
    format_value,
    from_epoch_millis,
    iter_arguments,
    to_epoch_millis,
)


class DayOfWeek(Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"


class TestFormatValue:
    def test_booleans_are_lowercase(self):
        assert format_value(True) == "true"
        assert format_value(False) == "false"

    def test_numbers(self):
        assert format_value(123) == "123"
        assert format_value(1.5) == "1.5"

    def test_enum_uses_value(self):
        assert format_value(DayOfWeek.MONDAY) == "MONDAY"

    def test_datetime_is_epoch_millis(self):
        value = datetime(2024, 1, 2, 3, 4, 5, 678901, tzinfo=timezone.utc)
        assert format_value(value) == "1704164645678"

    def test_date_and_time_are_iso(self):
        assert format_value(date(2024, 1, 2)) == "2024-01-02"
        assert format_value(time(10, 30)) == "10:30:00"


class TestEpochMillis:
    def test_truncates_sub_millisecond_precision(self):
        value = datetime(2024, 1, 2, 3, 4, 5, 678999, tzinfo=timezone.utc)
        assert to_epoch_millis(value) == 1704164645678

    def test_round_trip(self):
        value = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
        assert from_epoch_millis(to_epoch_millis(value)) == value

    def test_naive_datetime_is_local_time(self):
        naive = datetime(2024, 6, 1, 12, 0, 0)
        assert to_epoch_millis(naive) == to_epoch_millis(naive.astimezone())

    def test_epoch(self):
        assert to_epoch_millis(datetime(1970, 1, 1, tzinfo=timezone.utc)) == 0
        assert from_epoch_millis(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)


class TestIterArguments:
    def test_lists_expand_in_order(self):
        pairs = list(iter_arguments({"strings": ["a", "b", "c"], "number": 1}))
        assert pairs == [("strings", "a"), ("strings", "b"), ("strings", "c"), ("number", 1)]

    def test_tuples_expand(self):
        assert list(iter_arguments({"n": (1, 2)})) == [("n", 1), ("n", 2)]

    def test_none_and_undefined_are_dropped(self):
        pairs = list(iter_arguments({"a": None, "b": UNDEFINED, "c": [1, None, UNDEFINED, 2]}))
        assert pairs == [("c", 1), ("c", 2)]

    def test_empty_key_is_rejected(self):
        with pytest.raises(InvalidArgumentError):
            list(iter_arguments({"": "value"}))

    def test_empty_key_is_rejected_even_without_value(self):
        with pytest.raises(InvalidArgumentError):
            list(iter_arguments({"ok": 1, "": None}))

    def test_empty_mapping(self):
        assert list(iter_arguments(None)) == []
        assert list(iter_arguments({})) == []


class TestEncodeQuery:
    def test_one_pair_per_list_element(self):
        assert encode_query({"a": ["x", "y", "z"]}) == "a=x&a=y&a=z"

    def test_mapping_order_is_preserved(self):
        assert encode_query({"b": 1, "a": 2}) == "b=1&a=2"

    def test_reserved_characters_and_unicode(self):
        query = encode_query({"string": "héllo&gøod+bye?"})
        assert query == "string=h%C3%A9llo%26g%C3%B8od%2Bbye%3F"

    def test_plus_and_space(self):
        assert encode_query({"value": "a+b c"}) == "value=a%2Bb%20c"

    def test_keys_are_encoded(self):
        assert encode_query({"a b": 1}) == "a%20b=1"

    def test_mixed_scalars(self):
        when = datetime(1970, 1, 1, 0, 0, 1, tzinfo=timezone.utc)
        query = encode_query({"flag": True, "date": when, "day": DayOfWeek.TUESDAY})
        assert query == "flag=true&date=1000&day=TUESDAY"

    def test_empty(self):
        assert encode_query({}) == ""
        assert encode_query({"skip": None}) == ""

    def test_form_is_query_bytes(self):
        assert encode_form({"a": "é"}) == b"a=%C3%A9"


class TestAppendQuery:
    def test_no_query(self):
        assert append_query("http://host/a", "") == "http://host/a"

    def test_new_query(self):
        assert append_query("http://host/a", "x=1") == "http://host/a?x=1"

    def test_existing_query(self):
        assert append_query("http://host/a?x=1", "y=2") == "http://host/a?x=1&y=2"
