"""Condition and rule evaluation.

Two evaluation paths live here:

- ``RuleEvaluator`` evaluates free-text rule conditions (see
  :mod:`rulecore.rules.expressions`) and flat rule lists, recording every
  step in a trace. It never raises: a condition that cannot be evaluated
  is false.
- ``evaluate_leaf`` / ``evaluate_group`` / ``evaluate_node`` evaluate the
  typed condition trees built in the rule builder.

Group semantics: AND is true iff every child is true, OR is true iff any
child is true. An empty AND group is true and an empty OR group is false.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Iterable, Mapping
from typing import Any

from ..conditions.models import (
    ConditionGroup,
    ConditionLeaf,
    ConditionNode,
    ConditionOperator,
    ConditionTraceEntry,
    LogicalOperator,
)
from .expressions import evaluate_expression
from .models import Rule, RuleSetEvaluation, TraceEntry, TraceType
from .trace import TraceRecorder, elapsed_ms

logger = logging.getLogger(__name__)


def priority_sort_key(rule: Rule) -> tuple[bool, int]:
    # Rules without a priority run after every prioritized rule
    return (rule.priority is None, rule.priority or 0)


class RuleEvaluator:
    """Evaluates expression conditions and rule lists with an audit trace.

    The trace accumulates across calls on the same instance; use a fresh
    instance (or a fresh recorder) per evaluation run.
    """

    def __init__(self, recorder: TraceRecorder | None = None) -> None:
        self.recorder = recorder or TraceRecorder()

    @property
    def trace(self) -> list[TraceEntry]:
        return self.recorder.entries

    def evaluate_condition(self, expression: str, variables: Mapping[str, Any]) -> bool:
        """Evaluate a boolean expression against ``variables``.

        Any failure (unknown name, syntax error, division by zero, type
        mismatch) makes the condition false and is recorded in the trace.
        """
        start = time.perf_counter()
        try:
            result = bool(evaluate_expression(expression, variables))
        except Exception as e:
            logger.debug(f"Condition {expression!r} failed to evaluate: {e}")
            self.recorder.add(
                TraceType.CONDITION,
                str(expression),
                dict(variables),
                False,
                elapsed_ms(start),
                passed=False,
                message=str(e),
            )
            return False

        self.recorder.add(
            TraceType.CONDITION,
            expression,
            dict(variables),
            result,
            elapsed_ms(start),
            passed=result,
        )
        return result

    def evaluate_rules(
        self, rules: Iterable[Rule], variables: Mapping[str, Any]
    ) -> list[Rule]:
        """Return the rules whose condition holds, in ascending priority order.

        The sort is stable, so rules sharing a priority keep their input
        order. A rule without a condition always applies.
        """
        applicable: list[Rule] = []

        for rule in sorted(rules, key=priority_sort_key):
            start = time.perf_counter()
            passed = not rule.condition or self.evaluate_condition(rule.condition, variables)
            if passed:
                applicable.append(rule)
            self.recorder.add(
                TraceType.RULE,
                rule.name,
                {"condition": rule.condition},
                passed,
                elapsed_ms(start),
                passed=passed,
            )

        return applicable


def evaluate_rule_set(
    rules: Iterable[Rule], variables: Mapping[str, Any]
) -> RuleSetEvaluation:
    """Evaluate ``rules`` with a fresh evaluator and return rules plus trace."""
    evaluator = RuleEvaluator()
    applicable = evaluator.evaluate_rules(rules, variables)
    return RuleSetEvaluation(applicable_rules=applicable, trace=evaluator.trace)


# ---------------------------------------------------------------------------
# Typed condition trees
# ---------------------------------------------------------------------------


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(number) else number


def _values_equal(left: Any, right: Any) -> bool:
    # True == 1 in Python; a boolean field never equals a number
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def _compare_numbers(actual: Any, expected: Any, op) -> bool:
    left = _as_number(actual)
    right = _as_number(expected)
    if left is None or right is None:
        return False
    return op(left, right)


def apply_operator(
    op: ConditionOperator, actual: Any, expected: Any, expected_end: Any = None
) -> bool:
    """Apply a comparison operator to an actual field value. Pure.

    ``isTrue``/``isFalse`` also accept the strings ``"true"``/``"false"`` and
    the numbers 1/0, the forms boolean fields arrive in from form input.
    """
    op = ConditionOperator(op)

    if op == ConditionOperator.EQ:
        return _values_equal(actual, expected)
    if op == ConditionOperator.NE:
        return not _values_equal(actual, expected)
    if op == ConditionOperator.GT:
        return _compare_numbers(actual, expected, lambda a, b: a > b)
    if op == ConditionOperator.GTE:
        return _compare_numbers(actual, expected, lambda a, b: a >= b)
    if op == ConditionOperator.LT:
        return _compare_numbers(actual, expected, lambda a, b: a < b)
    if op == ConditionOperator.LTE:
        return _compare_numbers(actual, expected, lambda a, b: a <= b)
    if op == ConditionOperator.BETWEEN:
        low = _as_number(expected)
        high = _as_number(expected if expected_end is None else expected_end)
        value = _as_number(actual)
        if value is None or low is None or high is None:
            return False
        return low <= value <= high
    if op in (ConditionOperator.IN, ConditionOperator.NOT_IN):
        if not isinstance(expected, (list, tuple)):
            return False
        member = any(_values_equal(actual, item) for item in expected)
        return member if op == ConditionOperator.IN else not member
    if op == ConditionOperator.CONTAINS:
        if isinstance(actual, str):
            return isinstance(expected, str) and expected in actual
        if isinstance(actual, (list, tuple)):
            return any(_values_equal(item, expected) for item in actual)
        return False
    if op == ConditionOperator.IS_TRUE:
        return actual is True or actual == "true" or (type(actual) in (int, float) and actual == 1)
    if op == ConditionOperator.IS_FALSE:
        return actual is False or actual == "false" or (type(actual) in (int, float) and actual == 0)
    return False


def evaluate_leaf(
    leaf: ConditionLeaf, inputs: Mapping[str, Any]
) -> tuple[bool, ConditionTraceEntry]:
    """Evaluate a single leaf against ``inputs``.

    A missing (or None) field only satisfies ``isFalse``.
    """
    actual = inputs.get(leaf.field_code) if leaf.field_code else None

    if actual is None:
        result = leaf.operator == ConditionOperator.IS_FALSE
    else:
        result = apply_operator(leaf.operator, actual, leaf.value, leaf.value_end)

    trace = ConditionTraceEntry(
        condition_id=leaf.id,
        field_code=leaf.field_code,
        operator=leaf.operator,
        expected_value=leaf.value,
        actual_value=actual,
        result=result,
    )
    return result, trace


def evaluate_node(
    node: ConditionNode,
    inputs: Mapping[str, Any],
    traces: list[ConditionTraceEntry] | None = None,
) -> bool:
    """Recursively evaluate a leaf or group, short-circuiting groups.

    Leaf-level trace entries are appended to ``traces`` when given; leaves
    skipped by short-circuiting produce no entry.
    """
    if isinstance(node, ConditionLeaf):
        result, trace = evaluate_leaf(node, inputs)
        if traces is not None:
            traces.append(trace)
        return result

    if node.operator == LogicalOperator.AND:
        for child in node.conditions:
            if not evaluate_node(child, inputs, traces):
                return False
        return True

    for child in node.conditions:
        if evaluate_node(child, inputs, traces):
            return True
    return False


def evaluate_group(group: ConditionGroup, inputs: Mapping[str, Any]) -> bool:
    return evaluate_node(group, inputs)
