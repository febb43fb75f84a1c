"""Tree-walking evaluator for parsed scientific expressions.

Arithmetic is carried out with mpmath floats at double precision. mpmath
never overflows to an exception, so a result that is too large for a
float only shows up in the final finiteness check, the same way an
infinite intermediate would in a plain float evaluator.
"""

from __future__ import annotations

import math
import sys
from decimal import Decimal

import mpmath

from .config import (
    ANGLE_MODES,
    DEFAULT_ANGLE_MODE,
    DISPLAY_DECIMALS,
    FACTORIAL_LIMIT,
    TRIG_FUNCTIONS,
    WORKING_PRECISION_BITS,
)
from .logging_config import get_logger
from .parser import (
    BinaryOp,
    Constant,
    Factorial,
    FunctionCall,
    Group,
    Node,
    Number,
    Percent,
    UnaryOp,
    parse_expression,
)
from .types import EvaluationError, ValidationError

logger = get_logger("evaluator")

INVALID_RESULT_MESSAGE = "Expression produced an invalid result."

_CONSTANTS = {
    "pi": lambda: +mpmath.pi,
    "e": lambda: +mpmath.e,
}

_FUNCTIONS = {
    "sin": mpmath.sin,
    "cos": mpmath.cos,
    "tan": mpmath.tan,
    "log": mpmath.log10,
    "ln": mpmath.ln,
    "sqrt": mpmath.sqrt,
    "abs": mpmath.fabs,
}


def normalize_angle_mode(angle_mode: str | None) -> str:
    """Return "DEG" or "RAD", accepting any letter case."""
    if angle_mode is None:
        return DEFAULT_ANGLE_MODE
    mode = str(angle_mode).strip().upper()
    if mode not in ANGLE_MODES:
        raise ValidationError(
            f"Unknown angle mode '{angle_mode}' (expected DEG or RAD)",
            "INVALID_ANGLE_MODE",
        )
    return mode


def factorial(value: mpmath.mpf) -> mpmath.mpf:
    """Factorial of a non-negative integer no larger than FACTORIAL_LIMIT."""
    if not mpmath.isint(value) or value < 0:
        raise EvaluationError(
            "Factorial only supports non-negative integers.", "FACTORIAL_DOMAIN"
        )
    if value > FACTORIAL_LIMIT:
        raise EvaluationError(
            "Factorial is too large to compute safely.", "FACTORIAL_TOO_LARGE"
        )
    return mpmath.mpf(math.factorial(int(value)))


def _checked(value):
    # NaN and complex values (sqrt(-1), log(-1), (-8)^(1/3)) are never valid
    if isinstance(value, mpmath.mpc) or mpmath.isnan(value):
        raise EvaluationError(INVALID_RESULT_MESSAGE)
    return value


class TreeEvaluator:
    """Evaluate an expression tree in a fixed angle mode."""

    def __init__(self, angle_mode: str = DEFAULT_ANGLE_MODE):
        self.angle_mode = normalize_angle_mode(angle_mode)

    def evaluate(self, node: Node) -> float:
        with mpmath.workprec(WORKING_PRECISION_BITS):
            try:
                value = self.visit(node)
                if mpmath.isinf(value):
                    raise EvaluationError(INVALID_RESULT_MESSAGE)
                result = float(value)
            except RecursionError:
                raise EvaluationError("Expression is nested too deeply", "TOO_DEEP") from None
            except ZeroDivisionError:
                raise EvaluationError(INVALID_RESULT_MESSAGE) from None
            except (OverflowError, ValueError) as e:
                logger.debug("Numeric failure during evaluation: %s", e)
                raise EvaluationError(INVALID_RESULT_MESSAGE) from None

        if not math.isfinite(result):
            raise EvaluationError(INVALID_RESULT_MESSAGE)
        return result

    def visit(self, node: Node):
        if isinstance(node, Number):
            # float() parses the literal exactly like a double would
            return mpmath.mpf(float(node.text))
        if isinstance(node, Constant):
            return _CONSTANTS[node.name]()
        if isinstance(node, Group):
            return self.visit(node.inner)
        if isinstance(node, UnaryOp):
            operand = self.visit(node.operand)
            return -operand if node.op == "-" else +operand
        if isinstance(node, BinaryOp):
            return self._binary(node)
        if isinstance(node, FunctionCall):
            return self._call(node)
        if isinstance(node, Factorial):
            return factorial(self.visit(node.operand))
        if isinstance(node, Percent):
            return self.visit(node.operand) / 100
        raise TypeError(f"Unknown expression node: {type(node).__name__}")

    def _binary(self, node: BinaryOp):
        # a+b+c and a*b/c parse as left-nested trees of any length, so the
        # left spine is walked with a loop instead of recursion
        chain = []
        while isinstance(node, BinaryOp) and node.op != "^":
            chain.append(node)
            node = node.left
        if not chain:
            return self._apply(node.op, self.visit(node.left), self.visit(node.right))

        value = self.visit(node)
        for link in reversed(chain):
            value = self._apply(link.op, value, self.visit(link.right))
        return value

    def _apply(self, op: str, left, right):
        if op == "+":
            return _checked(left + right)
        if op == "-":
            return _checked(left - right)
        if op == "*":
            return _checked(left * right)
        if op == "/":
            return _checked(left / right)
        return _checked(mpmath.power(left, right))

    def _call(self, node: FunctionCall):
        argument = self.visit(node.argument)
        if node.name in TRIG_FUNCTIONS and self.angle_mode == "DEG":
            argument = mpmath.radians(argument)
        return _checked(_FUNCTIONS[node.name](argument))


def evaluate(expression: str, angle_mode: str = DEFAULT_ANGLE_MODE) -> float:
    """Evaluate a scientific-calculator expression.

    Args:
        expression: Expression text such as "sin(90) + 3^2" or "5!/2"
        angle_mode: "DEG" or "RAD"; applies to sin, cos and tan

    Returns:
        The finite result as a float (not yet rounded for display)

    Raises:
        ValidationError: Empty input, unsupported characters, unknown tokens
        ParseError: Malformed expression or misplaced factorial
        EvaluationError: Factorial domain/size errors and non-finite results

    Example:
        >>> evaluate("2+2", "DEG")
        4.0
        >>> evaluate("5%", "DEG")
        0.05
    """
    evaluator = TreeEvaluator(angle_mode)
    tree = parse_expression(expression)
    value = evaluator.evaluate(tree)
    logger.debug("Evaluated %r in %s mode -> %r", expression, evaluator.angle_mode, value)
    return value


def format_number(value: float, decimals: int = DISPLAY_DECIMALS) -> str:
    """Round a result to a fixed number of decimals for display.

    Rounds half up after nudging by machine epsilon, which hides noise such
    as ``0.1 + 0.2 = 0.30000000000000004``. Integral results are rendered
    without a decimal point.
    """
    if not math.isfinite(value):
        raise EvaluationError("Result is not a finite number.")

    scale = 10 ** decimals
    # Past 2**53 every double is already an integer at this scale
    if abs(value) * scale < 2**53:
        rounded = math.floor((value + sys.float_info.epsilon) * scale + 0.5) / scale
    else:
        rounded = value
    if rounded == 0:
        rounded = 0.0
    if rounded.is_integer() and abs(rounded) < 1e21:
        return str(int(rounded))
    return _plain_repr(rounded)


def _plain_repr(value: float) -> str:
    """Shortest round-trip digits, in positional notation down to 1e-6.

    ``repr`` switches to exponent form below 1e-4; 0.00001 is shown as
    written and 1.5e-8 keeps a compact exponent without zero padding.
    """
    digits = Decimal(repr(value))
    if digits.adjusted() >= -6:
        return format(digits, "f")
    mantissa, exponent = repr(value).split("e")
    return f"{mantissa}e{int(exponent)}"
