from pathlib import Path

import pytest

from waitfor.conditions import constructors
from waitfor.errors import EmptyExpressionError
from waitfor.errors import SharedSubtreeError
from waitfor.expression import CombinatorNode
from waitfor.expression import ConditionLeaf
from waitfor.expression import all_of
from waitfor.expression import and_
from waitfor.expression import any_of
from waitfor.expression import as_expression
from waitfor.expression import describe_expression
from waitfor.expression import is_expression_met
from waitfor.expression import iter_conditions
from waitfor.expression import or_
from waitfor.primitives import CombinatorOperator
from waitfor.testing import counting_condition
from waitfor.testing import write_bytes


def test_as_expression_wraps_conditions_and_passes_expressions_through(tmp_path: Path) -> None:
    condition = constructors.exists(tmp_path)
    leaf = as_expression(condition)

    assert isinstance(leaf, ConditionLeaf)
    assert leaf.condition is condition
    assert as_expression(leaf) is leaf


def test_or_skips_right_when_left_is_met() -> None:
    left, left_check = counting_condition(True)
    right, right_check = counting_condition(False)

    assert is_expression_met(or_(left, right)) is True
    assert left_check.call_count == 1
    assert right_check.call_count == 0


def test_or_evaluates_right_when_left_is_not_met() -> None:
    left, left_check = counting_condition(False)
    right, right_check = counting_condition(True)

    assert is_expression_met(or_(left, right)) is True
    assert left_check.call_count == 1
    assert right_check.call_count == 1


def test_and_skips_right_when_left_is_not_met() -> None:
    left, left_check = counting_condition(False)
    right, right_check = counting_condition(True)

    assert is_expression_met(and_(left, right)) is False
    assert left_check.call_count == 1
    assert right_check.call_count == 0


def test_and_evaluates_right_when_left_is_met() -> None:
    left, _ = counting_condition(True)
    right, right_check = counting_condition(False)

    assert is_expression_met(and_(left, right)) is False
    assert right_check.call_count == 1


def test_or_with_present_file_never_records_updated_baseline(tmp_path: Path) -> None:
    watched = write_bytes(tmp_path / "a.log", 10)
    present = write_bytes(tmp_path / "b.flag", 1)
    updated = constructors.updated(watched)
    expression = or_(constructors.exists(present), updated)

    assert is_expression_met(expression) is True
    assert updated.memory.last_observed is None


def test_skipped_stateful_condition_keeps_memory_until_reached(tmp_path: Path) -> None:
    path = write_bytes(tmp_path / "data.bin", 10)
    gate, gate_check = counting_condition(False)
    size_changed = constructors.size_changed(path)
    expression = and_(gate, size_changed)

    assert is_expression_met(expression) is False
    write_bytes(path, 20)
    assert is_expression_met(expression) is False
    assert size_changed.memory.last_observed is None

    gate_check.result = True
    assert is_expression_met(expression) is False
    assert size_changed.memory.last_observed == 20


def test_nested_expression() -> None:
    a, _ = counting_condition(False, "a")
    b, _ = counting_condition(True, "b")
    c, c_check = counting_condition(False, "c")
    expression = and_(or_(a, b), or_(c, constructors.elapsed(0.0)))

    assert is_expression_met(expression) is True
    assert c_check.call_count == 1


def test_same_condition_twice_is_rejected(tmp_path: Path) -> None:
    updated = constructors.updated(write_bytes(tmp_path / "a.log", 1))

    with pytest.raises(SharedSubtreeError, match="more than once"):
        or_(updated, updated)


def test_same_subtree_twice_is_rejected() -> None:
    a, _ = counting_condition(True)
    b, _ = counting_condition(True)
    shared = and_(a, b)

    with pytest.raises(SharedSubtreeError):
        or_(shared, shared)


def test_condition_reused_in_second_tree_is_rejected_there() -> None:
    a, _ = counting_condition(True)
    b, _ = counting_condition(True)
    inner = or_(a, b)

    with pytest.raises(SharedSubtreeError):
        and_(inner, a)


def test_any_of_folds_left_to_right() -> None:
    a, _ = counting_condition(False, "a")
    b, _ = counting_condition(False, "b")
    c, _ = counting_condition(True, "c")

    expression = any_of(a, b, c)

    assert isinstance(expression, CombinatorNode)
    assert expression.operator == CombinatorOperator.OR
    assert describe_expression(expression) == "((a OR b) OR c)"
    assert [condition.describe() for condition in iter_conditions(expression)] == ["a", "b", "c"]
    assert is_expression_met(expression) is True


def test_all_of_is_met_only_when_every_condition_is() -> None:
    a, _ = counting_condition(True, "a")
    b, b_check = counting_condition(False, "b")

    expression = all_of(a, b)

    assert describe_expression(expression) == "(a AND b)"
    assert is_expression_met(expression) is False
    b_check.result = True
    assert is_expression_met(expression) is True


def test_single_condition_becomes_a_leaf(tmp_path: Path) -> None:
    expression = any_of(constructors.exists(tmp_path))

    assert isinstance(expression, ConditionLeaf)
    assert describe_expression(expression) == f"exists {tmp_path}"


def test_empty_combination_is_rejected() -> None:
    with pytest.raises(EmptyExpressionError):
        any_of()
    with pytest.raises(EmptyExpressionError):
        all_of()


def test_describe_shows_negation(tmp_path: Path) -> None:
    expression = or_(
        constructors.exists(tmp_path / "lock", is_negated=True),
        constructors.tcp_connect("localhost", 5432),
    )

    assert describe_expression(expression) == f"(not exists {tmp_path / 'lock'} OR connect localhost:5432)"
