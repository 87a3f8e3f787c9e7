"""Example tools shipped with Ponder."""

import ast
import operator
from typing import (
    Any,
    Callable,
    Dict,
    Type,
)

from ponder.core.errors import ToolExecutionError
from ponder.tools import (
    ToolRegistry,
    tool,
)

_BIN_OPS: Dict[Type[ast.operator], Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}
_UNARY_OPS: Dict[Type[ast.unaryop], Callable[[Any], Any]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

# Integer results are capped at this many bits; checked before each ``*`` and ``**``.
_MAX_RESULT_BITS = 4096


def _check_result_size(op: ast.operator, left: int | float, right: int | float) -> None:
    if type(left) is not int or type(right) is not int:
        return
    if isinstance(op, ast.Mult):
        bits = left.bit_length() + right.bit_length()
    elif isinstance(op, ast.Pow) and right > 0 and abs(left) > 1:
        bits = right * left.bit_length()
    else:
        return
    if bits > _MAX_RESULT_BITS:
        raise ToolExecutionError("result is too large")


def _eval_node(node: ast.AST) -> int | float:
    if isinstance(node, ast.Expression):
        return _eval_node(node.body)
    if isinstance(node, ast.Constant) and type(node.value) in (int, float):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _BIN_OPS:
        left, right = _eval_node(node.left), _eval_node(node.right)
        _check_result_size(node.op, left, right)
        return _BIN_OPS[type(node.op)](left, right)
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_eval_node(node.operand))
    raise ToolExecutionError(f"unsupported expression element: {type(node).__name__}")


def evaluate(expression: str) -> int | float:
    """Safely evaluate an arithmetic expression (numbers, + - * / // % ** and parentheses)."""
    if not expression.strip():
        raise ToolExecutionError("empty expression")
    try:
        tree = ast.parse(expression.strip(), mode="eval")
    except SyntaxError as exc:
        raise ToolExecutionError(f"invalid expression {expression!r}") from exc
    try:
        return _eval_node(tree)
    except ZeroDivisionError as exc:
        raise ToolExecutionError("division by zero") from exc
    except OverflowError as exc:
        raise ToolExecutionError("result is too large") from exc


@tool("calculator")
def calculator(expression: str) -> str:
    """Evaluate an arithmetic expression such as 15*7 or (2+3)**2 and return the result."""
    value = evaluate(expression)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


@tool("echo")
def echo(text: str) -> str:
    """Echo the input text back to the caller."""
    return text


def default_registry(timeout: float | None = None) -> ToolRegistry:
    """Registry holding the built-in tools."""
    registry = ToolRegistry(timeout=timeout)
    registry.register(calculator)
    registry.register(echo)
    return registry
