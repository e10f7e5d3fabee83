from __future__ import annotations

import pytest

from dbcrud.errors import ConfigurationError
from dbcrud.models import CompositeKey, SingleKey, primary_key_spec


class TestPrimaryKeySpec:
    """Tests for primary_key_spec() conversion."""

    def test_string_is_single_key(self) -> None:
        assert primary_key_spec("id") == SingleKey("id")

    def test_sequence_is_composite_key(self) -> None:
        assert primary_key_spec(["a", "b"]) == CompositeKey(("a", "b"))
        assert primary_key_spec(("a", "b")).columns == ("a", "b")

    def test_one_element_sequence_stays_composite(self) -> None:
        assert primary_key_spec(["id"]) == CompositeKey(("id",))

    @pytest.mark.parametrize("value", ["", [], (), ["a", ""], ["a", "a"], [1, 2], 5, None])
    def test_invalid_definitions_raise(self, value) -> None:
        with pytest.raises(ConfigurationError):
            primary_key_spec(value)


class TestSingleKey:
    def test_extract_returns_scalar(self) -> None:
        assert SingleKey("id").extract({"name": "ada", "id": 3}) == 3

    def test_extract_missing_column_raises_key_error(self) -> None:
        with pytest.raises(KeyError):
            SingleKey("id").extract({"name": "ada"})

    def test_conditions_for_scalar(self) -> None:
        assert SingleKey("id").conditions_for(3) == {"id": 3}

    def test_conditions_for_none_is_still_a_value(self) -> None:
        assert SingleKey("id").conditions_for(None) == {"id": None}

    def test_conditions_for_mapping_with_exact_column(self) -> None:
        assert SingleKey("id").conditions_for({"id": 3}) == {"id": 3}

    @pytest.mark.parametrize("value", [{}, {"other": 3}, {"id": 3, "other": 4}])
    def test_conditions_for_mapping_with_wrong_columns_raises(self, value) -> None:
        with pytest.raises(ValueError):
            SingleKey("id").conditions_for(value)


class TestCompositeKey:
    def test_extract_projects_in_key_order(self) -> None:
        key = CompositeKey(("a", "b"))

        pk_value = key.extract({"c": 3, "b": 2, "a": 1})

        assert list(pk_value.items()) == [("a", 1), ("b", 2)]

    def test_extract_missing_column_raises_key_error(self) -> None:
        with pytest.raises(KeyError):
            CompositeKey(("a", "b")).extract({"a": 1})

    def test_conditions_for_keeps_caller_order(self) -> None:
        conditions = CompositeKey(("a", "b")).conditions_for({"b": 2, "a": 1})

        assert list(conditions) == ["b", "a"]

    @pytest.mark.parametrize("value", [1, "a", {"a": 1}, {"a": 1, "b": 2, "c": 3}])
    def test_conditions_for_rejects_incomplete_or_scalar_keys(self, value) -> None:
        with pytest.raises(ValueError):
            CompositeKey(("a", "b")).conditions_for(value)
