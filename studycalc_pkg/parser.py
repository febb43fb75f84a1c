"""Input parsing and preprocessing module.

This module handles:
- Input sanitization and validation (empty input, length, character set)
- Normalization (lower-casing, whitespace removal, the π symbol)
- Detection of unknown function names and tokens
- Tokenization and recursive-descent parsing into an expression tree

The grammar, from lowest to highest precedence::

    expr    := term (('+' | '-') term)*
    term    := unary (('*' | '/') unary)*
    unary   := ('+' | '-') unary | power
    power   := postfix ('^' unary)?
    postfix := primary ('!' | '%')?
    primary := NUMBER | CONSTANT | FUNCTION '(' expr ')' | '(' expr ')'

``^`` is right associative and binds tighter than unary minus, so ``-2^2``
is ``-4`` and ``2^3^2`` is ``512``. ``!`` only applies to a number literal
or a parenthesized group, ``%`` only to a number literal.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Union

from .config import (
    ALLOWED_CHARS_RE,
    ALLOWED_CONSTANTS,
    ALLOWED_FUNCTIONS,
    IDENTIFIER_RE,
    MAX_EXPRESSION_DEPTH,
    MAX_INPUT_LENGTH,
    NUMBER_RE,
    PI_SYMBOL,
    WHITESPACE_RE,
)
from .types import ParseError, ValidationError

# Token kinds
NUMBER = "NUMBER"
IDENT = "IDENT"
OPERATOR = "OPERATOR"
POSTFIX = "POSTFIX"
LPAREN = "LPAREN"
RPAREN = "RPAREN"
COMMA = "COMMA"

_SINGLE_CHAR_TOKENS = {
    "+": OPERATOR,
    "-": OPERATOR,
    "*": OPERATOR,
    "/": OPERATOR,
    "^": OPERATOR,
    "!": POSTFIX,
    "%": POSTFIX,
    "(": LPAREN,
    ")": RPAREN,
    ",": COMMA,
}


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    position: int


# Expression tree nodes


@dataclass(frozen=True)
class Number:
    text: str


@dataclass(frozen=True)
class Constant:
    name: str


@dataclass(frozen=True)
class Group:
    """A parenthesized sub-expression; kept so ``(...)!`` can be recognized."""

    inner: "Node"


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class FunctionCall:
    name: str
    argument: "Node"


@dataclass(frozen=True)
class Factorial:
    operand: "Node"


@dataclass(frozen=True)
class Percent:
    operand: Number


Node = Union[Number, Constant, Group, UnaryOp, BinaryOp, FunctionCall, Factorial, Percent]


def preprocess(input_str: str) -> str:
    """Validate raw user input and return the normalized expression text.

    Args:
        input_str: Expression as typed by the user (e.g., "Sin(90) + 2^3")

    Returns:
        Lower-cased expression with whitespace removed and π spelled ``pi``

    Raises:
        ValidationError: On empty input, oversized input, unsupported
            characters or unknown identifiers
    """
    if input_str is None or not input_str.strip():
        raise ValidationError("Enter an expression first.", "EMPTY_INPUT")
    if len(input_str) > MAX_INPUT_LENGTH:
        raise ValidationError(
            f"Expression is too long (max {MAX_INPUT_LENGTH} characters)", "TOO_LONG"
        )

    expr = WHITESPACE_RE.sub("", input_str.lower()).replace(PI_SYMBOL, "pi")

    if not ALLOWED_CHARS_RE.match(expr):
        raise ValidationError(
            "Expression contains unsupported characters.", "UNSUPPORTED_CHARACTERS"
        )

    for match in IDENTIFIER_RE.finditer(expr):
        word = match.group(0)
        # The exponent marker of 2e3 is scanned as the word "e" as well
        if word in ALLOWED_FUNCTIONS or word in ALLOWED_CONSTANTS:
            continue
        raise ValidationError(
            f"Unknown function or token in expression: '{word}'", "UNKNOWN_TOKEN"
        )

    return expr


def tokenize(expr: str) -> list[Token]:
    """Split a preprocessed expression into tokens."""
    tokens: list[Token] = []
    i = 0
    while i < len(expr):
        char = expr[i]
        if char.isdigit() or char == ".":
            match = NUMBER_RE.match(expr, i)
            if match is None:
                raise ParseError(
                    f"Invalid expression: unexpected '{char}' at position {i + 1}",
                    position=i,
                )
            tokens.append(Token(NUMBER, match.group(0), i))
            i = match.end()
        elif char.isalpha():
            match = IDENTIFIER_RE.match(expr, i)
            tokens.append(Token(IDENT, match.group(0), i))
            i = match.end()
        elif char in _SINGLE_CHAR_TOKENS:
            tokens.append(Token(_SINGLE_CHAR_TOKENS[char], char, i))
            i += 1
        else:
            raise ParseError(
                f"Invalid expression: unexpected '{char}' at position {i + 1}",
                position=i,
            )
    return tokens


class ExpressionParser:
    """Recursive-descent parser producing an expression tree."""

    def __init__(self, tokens: list[Token], max_depth: int = MAX_EXPRESSION_DEPTH):
        self.tokens = tokens
        self.pos = 0
        self.depth = 0
        self.max_depth = max_depth

    def parse(self) -> Node:
        if not self.tokens:
            raise ParseError("Invalid expression: nothing to evaluate")
        node = self._parse_expression()
        token = self._current()
        if token is not None:
            raise self._unexpected(token)
        return node

    def _current(self) -> Token | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _advance(self) -> Token:
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def _at(self, kind: str, text: str | None = None) -> bool:
        token = self._current()
        if token is None or token.kind != kind:
            return False
        return text is None or token.text in text

    def _unexpected(self, token: Token | None) -> ParseError:
        if token is None:
            return ParseError("Invalid expression: unexpected end of input")
        if token.kind == COMMA:
            return ParseError(
                "Invalid expression: ',' is not supported (functions take one argument)",
                position=token.position,
            )
        return ParseError(
            f"Invalid expression: unexpected '{token.text}' at position {token.position + 1}",
            position=token.position,
        )

    def _enter(self) -> None:
        self.depth += 1
        if self.depth > self.max_depth:
            raise ParseError("Expression is nested too deeply", "TOO_DEEP")

    def _parse_expression(self) -> Node:
        self._enter()
        try:
            left = self._parse_term()
            while self._at(OPERATOR, "+-"):
                op = self._advance().text
                left = BinaryOp(op, left, self._parse_term())
            return left
        finally:
            self.depth -= 1

    def _parse_term(self) -> Node:
        left = self._parse_unary()
        while self._at(OPERATOR, "*/"):
            op = self._advance().text
            left = BinaryOp(op, left, self._parse_unary())
        return left

    def _parse_unary(self) -> Node:
        if self._at(OPERATOR, "+-"):
            op = self._advance().text
            self._enter()
            try:
                return UnaryOp(op, self._parse_unary())
            finally:
                self.depth -= 1
        return self._parse_power()

    def _parse_power(self) -> Node:
        base = self._parse_postfix()
        if self._at(OPERATOR, "^"):
            self._advance()
            self._enter()
            try:
                return BinaryOp("^", base, self._parse_unary())
            finally:
                self.depth -= 1
        return base

    def _parse_postfix(self) -> Node:
        node = self._parse_primary()
        while self._at(POSTFIX):
            token = self._advance()
            if token.text == "!":
                if not isinstance(node, (Number, Group)):
                    raise ParseError(
                        "Unsupported factorial placement.",
                        "FACTORIAL_PLACEMENT",
                        position=token.position,
                    )
                node = Factorial(node)
            else:
                if not isinstance(node, Number):
                    raise ParseError(
                        "Invalid expression: '%' must follow a number",
                        position=token.position,
                    )
                node = Percent(node)
        return node

    def _parse_primary(self) -> Node:
        token = self._current()
        if token is None:
            raise self._unexpected(None)

        if token.kind == NUMBER:
            self._advance()
            return Number(token.text)

        if token.kind == IDENT:
            self._advance()
            if token.text in ALLOWED_CONSTANTS:
                return Constant(token.text)
            if not self._at(LPAREN):
                raise ParseError(
                    f"Invalid expression: function '{token.text}' must be followed by '('",
                    position=token.position,
                )
            return FunctionCall(token.text, self._parse_group().inner)

        if token.kind == LPAREN:
            return self._parse_group()

        raise self._unexpected(token)

    def _parse_group(self) -> Group:
        opening = self._advance()
        inner = self._parse_expression()
        if not self._at(RPAREN):
            if self._current() is None:
                raise ParseError(
                    f"Invalid expression: missing ')' for '(' at position {opening.position + 1}",
                    position=opening.position,
                )
            raise self._unexpected(self._current())
        self._advance()
        return Group(inner)


@lru_cache(maxsize=256)
def parse_preprocessed(expr: str) -> Node:
    """Parse an already preprocessed expression into a tree."""
    return ExpressionParser(tokenize(expr)).parse()


def parse_expression(input_str: str) -> Node:
    """Validate, normalize and parse raw user input."""
    return parse_preprocessed(preprocess(input_str))


def is_balanced(input_str: str) -> tuple[bool, int | None]:
    """Check if parentheses are balanced. Returns (is_balanced, error_position)."""
    stack: list[int] = []
    for i, char in enumerate(input_str):
        if char == "(":
            stack.append(i)
        elif char == ")":
            if not stack:
                return False, i
            stack.pop()
    if stack:
        return False, stack[0]
    return True, None
