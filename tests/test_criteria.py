from __future__ import annotations

from dbcrud.criteria import NULL_CRITERIA, SimpleCriteria, SqlCondition


def test_null_criteria_has_no_condition() -> None:
    assert SimpleCriteria.null().condition is None
    assert SimpleCriteria.where().condition is None


def test_where_builds_equality_condition_in_keyword_order() -> None:
    condition = SimpleCriteria.where(name="ada", group_id=2).condition

    assert condition.render() == "name = :name AND group_id = :group_id"
    assert condition.parameters() == {":name": "ada", ":group_id": 2}


def test_sql_condition_returns_fragment_and_parameter_copy() -> None:
    params = {":min_age": 18}
    condition = SqlCondition("age >= :min_age", params)

    returned = condition.parameters()
    returned[":min_age"] = 99

    assert condition.render() == "age >= :min_age"
    assert condition.parameters() == {":min_age": 18}


def test_null_criteria_constant_matches_everything() -> None:
    assert NULL_CRITERIA.condition is None
    assert NULL_CRITERIA == SimpleCriteria.null()
