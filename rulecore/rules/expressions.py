"""Restricted boolean expression interpreter for rule conditions.

Rule conditions are short expressions such as ``age < 18`` or
``state in ['CA', 'NY'] && buildingAge > 30``. They are parsed with
:mod:`ast` and walked by a small interpreter that only knows names,
literals, comparisons, boolean logic and arithmetic. Calls, attribute
access, subscripts and every other construct are rejected, so a stored
condition can never execute code.

The JavaScript spellings found in rules authored for the console
(``&&``, ``||``, ``!``, ``===``, ``!==``, ``true``, ``false``, ``null``)
are accepted and mapped to their Python equivalents.
"""

from __future__ import annotations

import ast
import operator
import re
from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from ..errors import ExpressionError

MAX_EXPRESSION_LENGTH = 1000
MAX_EXPONENT = 100

# String literals are left untouched when translating operators
_STRING_LITERAL = re.compile(r"(\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*')")

_JS_OPERATORS = [
    (re.compile(r"!=="), "!="),
    (re.compile(r"==="), "=="),
    (re.compile(r"&&"), " and "),
    (re.compile(r"\|\|"), " or "),
    # `!` keeps its tight binding as unary `~`, which is interpreted as `not`
    (re.compile(r"!(?!=)"), "~"),
]

_LITERAL_NAMES: dict[str, Any] = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": None,
    "True": True,
    "False": False,
    "None": None,
}

_BINARY_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_COMPARE_OPERATORS = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.In: lambda left, right: left in right,
    ast.NotIn: lambda left, right: left not in right,
    ast.Is: operator.is_,
    ast.IsNot: operator.is_not,
}


def normalize_expression(expression: str) -> str:
    """Translate JavaScript operators outside of string literals.

    ``!x`` becomes ``~x`` so that ``!count == true`` groups as
    ``(!count) == true``. A ``~`` written by the author is rejected.
    """
    parts = _STRING_LITERAL.split(expression)
    for idx in range(0, len(parts), 2):
        if "~" in parts[idx]:
            raise ExpressionError("Unsupported operator: ~")
        for pattern, replacement in _JS_OPERATORS:
            parts[idx] = pattern.sub(replacement, parts[idx])
    return "".join(parts).strip()


@lru_cache(maxsize=512)
def parse_expression(expression: str) -> ast.Expression:
    """Parse an expression, raising ExpressionError for anything unsupported."""
    if not isinstance(expression, str) or not expression.strip():
        raise ExpressionError("Expression is empty")
    if len(expression) > MAX_EXPRESSION_LENGTH:
        raise ExpressionError(
            f"Expression exceeds {MAX_EXPRESSION_LENGTH} characters"
        )

    try:
        tree = ast.parse(normalize_expression(expression), mode="eval")
    except SyntaxError as e:
        raise ExpressionError(f"Invalid expression syntax: {e.msg}") from e
    return tree


class _Interpreter:
    def __init__(self, variables: Mapping[str, Any]):
        self.variables = variables

    def visit(self, node: ast.AST) -> Any:
        if isinstance(node, ast.Expression):
            return self.visit(node.body)
        if isinstance(node, ast.Constant):
            return node.value
        if isinstance(node, ast.Name):
            return self._lookup(node.id)
        if isinstance(node, (ast.List, ast.Tuple)):
            return [self.visit(elt) for elt in node.elts]
        if isinstance(node, ast.BoolOp):
            return self._bool_op(node)
        if isinstance(node, ast.UnaryOp):
            return self._unary_op(node)
        if isinstance(node, ast.BinOp):
            return self._binary_op(node)
        if isinstance(node, ast.Compare):
            return self._compare(node)
        raise ExpressionError(f"Unsupported expression element: {type(node).__name__}")

    def _lookup(self, name: str) -> Any:
        if name in self.variables:
            return self.variables[name]
        if name in _LITERAL_NAMES:
            return _LITERAL_NAMES[name]
        raise ExpressionError(f"{name} is not defined")

    def _bool_op(self, node: ast.BoolOp) -> Any:
        if isinstance(node.op, ast.And):
            result: Any = True
            for value in node.values:
                result = self.visit(value)
                if not result:
                    return result
            return result

        result = False
        for value in node.values:
            result = self.visit(value)
            if result:
                return result
        return result

    def _unary_op(self, node: ast.UnaryOp) -> Any:
        operand = self.visit(node.operand)
        if isinstance(node.op, (ast.Not, ast.Invert)):
            return not operand
        if isinstance(node.op, ast.USub):
            return -operand
        if isinstance(node.op, ast.UAdd):
            return +operand
        raise ExpressionError(f"Unsupported operator: {type(node.op).__name__}")

    def _binary_op(self, node: ast.BinOp) -> Any:
        func = _BINARY_OPERATORS.get(type(node.op))
        if func is None:
            raise ExpressionError(f"Unsupported operator: {type(node.op).__name__}")
        left = self.visit(node.left)
        right = self.visit(node.right)

        if isinstance(node.op, ast.Mult) and (
            isinstance(left, (str, list)) or isinstance(right, (str, list))
        ):
            raise ExpressionError("Sequence repetition is not supported")
        if isinstance(node.op, ast.Pow) and isinstance(right, (int, float)) and abs(right) > MAX_EXPONENT:
            raise ExpressionError(f"Exponent larger than {MAX_EXPONENT}")
        return func(left, right)

    def _compare(self, node: ast.Compare) -> bool:
        left = self.visit(node.left)
        for op, comparator in zip(node.ops, node.comparators):
            func = _COMPARE_OPERATORS.get(type(op))
            if func is None:
                raise ExpressionError(f"Unsupported comparison: {type(op).__name__}")
            right = self.visit(comparator)
            if not func(left, right):
                return False
            left = right
        return True


def evaluate_expression(expression: str, variables: Mapping[str, Any]) -> Any:
    """Evaluate ``expression`` with ``variables`` bound as names.

    Raises:
        ExpressionError: for unsupported syntax, unknown names, or a runtime
            failure such as division by zero or a type mismatch
    """
    tree = parse_expression(expression)
    try:
        return _Interpreter(variables).visit(tree)
    except ExpressionError:
        raise
    except (ArithmeticError, TypeError, ValueError, RecursionError) as e:
        raise ExpressionError(str(e) or type(e).__name__) from e
