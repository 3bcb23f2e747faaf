"""Restricted evaluator for formula-spec expressions.

Formula specs are Python expressions over canonical input keys. They are
parsed with :mod:`ast` and walked node by node; only arithmetic, comparisons,
boolean logic, conditional expressions and a fixed set of math functions are
allowed. Attribute access, subscripts, lambdas, comprehensions and calls to
anything outside ``FUNCTIONS`` raise :class:`FormulaError`.
"""

from __future__ import annotations

import ast
import functools
import math
import operator
from typing import Any, Callable, Dict, Mapping

from .errors import FormulaError


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(value, hi))


FUNCTIONS: Dict[str, Callable[..., Any]] = {
    "ln": math.log,
    "log10": math.log10,
    "exp": math.exp,
    "sqrt": math.sqrt,
    "abs": abs,
    "min": min,
    "max": max,
    "clamp": _clamp,
    "pow": math.pow,
}

_BINARY = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Pow: operator.pow,
}
_UNARY = {
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
    ast.Not: operator.not_,
}
_COMPARE = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
}


@functools.lru_cache(maxsize=512)
def compile_spec(spec: str) -> ast.Expression:
    """Parse ``spec`` once; syntax errors surface as FormulaError."""
    try:
        return ast.parse(spec.strip(), mode="eval")
    except SyntaxError as e:
        raise FormulaError(f"cannot parse formula {spec!r}: {e.msg}") from e


def _eval(node: ast.AST, names: Mapping[str, Any]) -> Any:
    if isinstance(node, ast.Expression):
        return _eval(node.body, names)

    if isinstance(node, ast.Constant):
        if isinstance(node.value, (int, float, str, bool)):
            return node.value
        raise FormulaError(f"constant {node.value!r} not allowed")

    if isinstance(node, ast.Name):
        if node.id in names:
            return names[node.id]
        raise FormulaError(f"unknown name {node.id!r}")

    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY:
        return _BINARY[type(node.op)](_eval(node.left, names), _eval(node.right, names))

    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY:
        return _UNARY[type(node.op)](_eval(node.operand, names))

    if isinstance(node, ast.BoolOp):
        if isinstance(node.op, ast.And):
            result = True
            for value in node.values:
                result = _eval(value, names)
                if not result:
                    return result
            return result
        result = False
        for value in node.values:
            result = _eval(value, names)
            if result:
                return result
        return result

    if isinstance(node, ast.Compare):
        left = _eval(node.left, names)
        for op, comparator in zip(node.ops, node.comparators):
            if type(op) not in _COMPARE:
                raise FormulaError(f"comparison {type(op).__name__} not allowed")
            right = _eval(comparator, names)
            if not _COMPARE[type(op)](left, right):
                return False
            left = right
        return True

    if isinstance(node, ast.IfExp):
        return _eval(node.body, names) if _eval(node.test, names) else _eval(node.orelse, names)

    if isinstance(node, ast.Call):
        if not isinstance(node.func, ast.Name) or node.func.id not in FUNCTIONS or node.keywords:
            raise FormulaError(f"call to {ast.dump(node.func)} not allowed")
        return FUNCTIONS[node.func.id](*(_eval(arg, names) for arg in node.args))

    raise FormulaError(f"{type(node).__name__} not allowed in formulas")


def evaluate(spec: str, names: Mapping[str, Any]) -> float:
    """Evaluate ``spec`` with ``names`` bound and return a finite float.

    Raises
    ------
    FormulaError
        If the expression uses anything outside the whitelist, references an
        unbound name, or does not produce a finite number.
    """
    tree = compile_spec(spec)
    try:
        value = _eval(tree, names)
    except FormulaError:
        raise
    except (ArithmeticError, ValueError, TypeError) as e:
        raise FormulaError(f"evaluating {spec!r} failed: {e}") from e
    if isinstance(value, bool):
        value = float(value)
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        raise FormulaError(f"formula {spec!r} produced non-numeric result {value!r}")
    return float(value)
