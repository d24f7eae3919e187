"""Evaluate the arithmetic typed into the amount field, e.g. ``12.50+3*2``."""
import ast
from decimal import Decimal, DivisionByZero, InvalidOperation

_BIN_OPS = {
    ast.Add: lambda a, b: a + b,
    ast.Sub: lambda a, b: a - b,
    ast.Mult: lambda a, b: a * b,
    ast.Div: lambda a, b: a / b,
}


def evaluate_amount(expression: str) -> Decimal:
    """Return the value of a +, -, *, / expression as a Decimal.

    Only numeric literals, the four operators, unary minus and parentheses
    are accepted. Raises ValueError for anything else, including division
    by zero.
    """
    text = (expression or "").strip().replace("×", "*").replace("÷", "/")
    if not text:
        raise ValueError("Amount is empty.")
    try:
        tree = ast.parse(text, mode="eval")
        return _eval(tree.body).quantize(Decimal("0.01"))
    except (SyntaxError, DivisionByZero, InvalidOperation, ZeroDivisionError,
            RecursionError, MemoryError) as e:
        raise ValueError(f"Invalid expression: {expression}") from e


def _eval(node) -> Decimal:
    if isinstance(node, ast.Constant) and type(node.value) in (int, float):
        return Decimal(str(node.value))
    if isinstance(node, ast.UnaryOp) and isinstance(node.op, (ast.USub, ast.UAdd)):
        value = _eval(node.operand)
        return -value if isinstance(node.op, ast.USub) else value
    if isinstance(node, ast.BinOp) and type(node.op) in _BIN_OPS:
        return _BIN_OPS[type(node.op)](_eval(node.left), _eval(node.right))
    raise ValueError("Only numbers and + - * / are allowed.")
