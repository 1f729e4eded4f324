from collections.abc import Iterator
from functools import reduce
from typing import Annotated
from typing import Literal
from typing import assert_never

from pydantic import Discriminator
from pydantic import Field

from waitfor.common.models import FrozenModel
from waitfor.conditions.data_types import Condition
from waitfor.conditions.evaluate import is_condition_met
from waitfor.errors import EmptyExpressionError
from waitfor.errors import SharedSubtreeError
from waitfor.primitives import CombinatorOperator


class ConditionLeaf(FrozenModel):
    """An expression consisting of a single condition."""

    node_type: Literal["leaf"] = "leaf"
    condition: Condition = Field(description="The wrapped condition")


class CombinatorNode(FrozenModel):
    """Two sub-expressions joined by AND or OR."""

    node_type: Literal["combinator"] = "combinator"
    operator: CombinatorOperator = Field(description="How the children are joined")
    left: "Expression" = Field(description="Evaluated first on every tick")
    right: "Expression" = Field(description="Evaluated only when the left child does not decide the result")


Expression = Annotated[ConditionLeaf | CombinatorNode, Discriminator("node_type")]

CombinatorNode.model_rebuild()

ExpressionLike = Condition | ConditionLeaf | CombinatorNode


def as_expression(item: ExpressionLike) -> ConditionLeaf | CombinatorNode:
    """Wrap a bare condition in a leaf; pass expressions through unchanged."""
    if isinstance(item, ConditionLeaf | CombinatorNode):
        return item
    return ConditionLeaf(condition=item)


def _iter_owned_objects(expression: ConditionLeaf | CombinatorNode) -> Iterator[object]:
    yield expression
    match expression:
        case ConditionLeaf():
            yield expression.condition
        case CombinatorNode():
            yield from _iter_owned_objects(expression.left)
            yield from _iter_owned_objects(expression.right)
        case _ as unreachable:
            assert_never(unreachable)


def _ensure_exclusively_owned(expression: ConditionLeaf | CombinatorNode) -> None:
    """Reject trees in which one node or condition instance is reachable twice.

    A shared stateful condition would have its memory advanced twice per tick.
    """
    seen_ids: set[int] = set()
    for owned in _iter_owned_objects(expression):
        if id(owned) in seen_ids:
            raise SharedSubtreeError(
                f"The same {type(owned).__name__} appears more than once in the expression; build a separate one"
            )
        seen_ids.add(id(owned))


def _combine(operator: CombinatorOperator, left: ExpressionLike, right: ExpressionLike) -> CombinatorNode:
    node = CombinatorNode(operator=operator, left=as_expression(left), right=as_expression(right))
    _ensure_exclusively_owned(node)
    return node


def and_(left: ExpressionLike, right: ExpressionLike) -> CombinatorNode:
    """Met when both sides are met. The right side is skipped on ticks where the left is not."""
    return _combine(CombinatorOperator.AND, left, right)


def or_(left: ExpressionLike, right: ExpressionLike) -> CombinatorNode:
    """Met when either side is met. The right side is skipped on ticks where the left is."""
    return _combine(CombinatorOperator.OR, left, right)


def any_of(*items: ExpressionLike) -> ConditionLeaf | CombinatorNode:
    """Fold items left to right into an OR chain; a single item becomes a leaf."""
    if not items:
        raise EmptyExpressionError("any_of() needs at least one condition")
    return reduce(or_, items[1:], as_expression(items[0]))


def all_of(*items: ExpressionLike) -> ConditionLeaf | CombinatorNode:
    """Fold items left to right into an AND chain; a single item becomes a leaf."""
    if not items:
        raise EmptyExpressionError("all_of() needs at least one condition")
    return reduce(and_, items[1:], as_expression(items[0]))


def iter_conditions(expression: ConditionLeaf | CombinatorNode) -> Iterator[Condition]:
    """Yield every leaf condition, left to right."""
    match expression:
        case ConditionLeaf():
            yield expression.condition
        case CombinatorNode():
            yield from iter_conditions(expression.left)
            yield from iter_conditions(expression.right)
        case _ as unreachable:
            assert_never(unreachable)


def describe_expression(expression: ConditionLeaf | CombinatorNode) -> str:
    match expression:
        case ConditionLeaf():
            return expression.condition.describe()
        case CombinatorNode():
            left = describe_expression(expression.left)
            right = describe_expression(expression.right)
            return f"({left} {expression.operator} {right})"
        case _ as unreachable:
            assert_never(unreachable)


def is_expression_met(expression: ConditionLeaf | CombinatorNode) -> bool:
    """Evaluate the expression once, short-circuiting left to right.

    A child that is skipped is not evaluated at all on this tick, so any stateful
    condition beneath it keeps its memory exactly as it was.
    """
    match expression:
        case ConditionLeaf():
            return is_condition_met(expression.condition)
        case CombinatorNode():
            is_left_met = is_expression_met(expression.left)
            match expression.operator:
                case CombinatorOperator.OR:
                    if is_left_met:
                        return True
                    return is_expression_met(expression.right)
                case CombinatorOperator.AND:
                    if not is_left_met:
                        return False
                    return is_expression_met(expression.right)
                case _ as unreachable:
                    assert_never(unreachable)
        case _ as unreachable:
            assert_never(unreachable)
