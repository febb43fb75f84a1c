"""Unit tests for parser module."""

import unittest

from studycalc_pkg.parser import (
    IDENT,
    NUMBER,
    OPERATOR,
    BinaryOp,
    ExpressionParser,
    Factorial,
    FunctionCall,
    Group,
    Number,
    Percent,
    UnaryOp,
    is_balanced,
    parse_preprocessed,
    preprocess,
    tokenize,
)
from studycalc_pkg.types import ParseError, ValidationError


class TestPreprocess(unittest.TestCase):
    """Test input normalization and validation."""

    def test_lowercases_and_strips_whitespace(self):
        self.assertEqual(preprocess("Sin(90) + 2^3"), "sin(90)+2^3")
        self.assertEqual(preprocess("  1 2 + 3 "), "12+3")

    def test_pi_symbol(self):
        self.assertEqual(preprocess("2*π"), "2*pi")
        self.assertEqual(preprocess("π"), "pi")

    def test_empty_input(self):
        for text in ("", "   ", "\t\n"):
            with self.assertRaises(ValidationError) as ctx:
                preprocess(text)
            self.assertEqual(ctx.exception.message, "Enter an expression first.")

    def test_unsupported_characters(self):
        for text in ("2 $ 2", "2 = 2", "x_1", "2;3"):
            with self.assertRaises(ValidationError) as ctx:
                preprocess(text)
            self.assertEqual(
                ctx.exception.message, "Expression contains unsupported characters."
            )

    def test_unknown_token(self):
        with self.assertRaises(ValidationError) as ctx:
            preprocess("foo(1)")
        self.assertEqual(
            str(ctx.exception), "Unknown function or token in expression: 'foo'"
        )

    def test_allowed_words(self):
        self.assertEqual(preprocess("ln(e) + log(10) + sqrt(4) + abs(-1)"), "ln(e)+log(10)+sqrt(4)+abs(-1)")

    def test_too_long(self):
        with self.assertRaises(ValidationError) as ctx:
            preprocess("1" * 1001)
        self.assertEqual(ctx.exception.code, "TOO_LONG")


class TestTokenize(unittest.TestCase):
    def test_kinds(self):
        tokens = tokenize("12.5+sin(3)")
        self.assertEqual(
            [(t.kind, t.text) for t in tokens[:3]],
            [(NUMBER, "12.5"), (OPERATOR, "+"), (IDENT, "sin")],
        )
        self.assertEqual(len(tokens), 6)

    def test_scientific_notation(self):
        tokens = tokenize("2e3+1.5e-2")
        self.assertEqual([t.text for t in tokens], ["2e3", "+", "1.5e-2"])

    def test_leading_dot(self):
        self.assertEqual(tokenize(".5")[0].text, ".5")


class TestParsePreprocessed(unittest.TestCase):
    """Test the shape of parsed trees."""

    def test_power_binds_tighter_than_unary_minus(self):
        self.assertEqual(
            parse_preprocessed("-2^2"),
            UnaryOp("-", BinaryOp("^", Number("2"), Number("2"))),
        )

    def test_power_is_right_associative(self):
        self.assertEqual(
            parse_preprocessed("2^3^2"),
            BinaryOp("^", Number("2"), BinaryOp("^", Number("3"), Number("2"))),
        )

    def test_subtraction_is_left_associative(self):
        self.assertEqual(
            parse_preprocessed("1-2-3"),
            BinaryOp("-", BinaryOp("-", Number("1"), Number("2")), Number("3")),
        )

    def test_negative_exponent(self):
        self.assertEqual(
            parse_preprocessed("2^-1"),
            BinaryOp("^", Number("2"), UnaryOp("-", Number("1"))),
        )

    def test_factorial_and_percent(self):
        self.assertEqual(parse_preprocessed("5!"), Factorial(Number("5")))
        self.assertEqual(parse_preprocessed("5%"), Percent(Number("5")))
        self.assertEqual(
            parse_preprocessed("(2+1)!"),
            Factorial(Group(BinaryOp("+", Number("2"), Number("1")))),
        )

    def test_function_call(self):
        self.assertEqual(
            parse_preprocessed("sqrt(16)"), FunctionCall("sqrt", Number("16"))
        )

    def test_factorial_placement(self):
        for expr in ("pi!", "sin(3)!", "5!!", "e!"):
            with self.assertRaises(ParseError) as ctx:
                parse_preprocessed(expr)
            self.assertEqual(ctx.exception.message, "Unsupported factorial placement.")
            self.assertEqual(ctx.exception.code, "FACTORIAL_PLACEMENT")

    def test_percent_requires_number(self):
        with self.assertRaises(ParseError):
            parse_preprocessed("pi%")

    def test_comma_rejected(self):
        for expr in ("2,3", "sin(1,2)"):
            with self.assertRaises(ParseError) as ctx:
                parse_preprocessed(expr)
            self.assertIn("','", ctx.exception.message)

    def test_implicit_multiplication_rejected(self):
        with self.assertRaises(ParseError) as ctx:
            parse_preprocessed("2pi")
        self.assertEqual(
            ctx.exception.message, "Invalid expression: unexpected 'pi' at position 2"
        )
        with self.assertRaises(ParseError):
            parse_preprocessed("(1)(2)")

    def test_function_without_parenthesis(self):
        with self.assertRaises(ParseError):
            parse_preprocessed("sin90")

    def test_missing_close_paren(self):
        with self.assertRaises(ParseError) as ctx:
            parse_preprocessed("(1+2")
        self.assertIn("missing ')'", ctx.exception.message)

    def test_dangling_operator(self):
        with self.assertRaises(ParseError) as ctx:
            parse_preprocessed("2+")
        self.assertIn("end of input", ctx.exception.message)

    def test_nothing_to_evaluate(self):
        with self.assertRaises(ParseError):
            ExpressionParser([]).parse()

    def test_nesting_limit(self):
        expr = "(" * 150 + "1" + ")" * 150
        with self.assertRaises(ParseError) as ctx:
            parse_preprocessed(expr)
        self.assertEqual(ctx.exception.code, "TOO_DEEP")


class TestIsBalanced(unittest.TestCase):
    def test_balanced(self):
        self.assertEqual(is_balanced("(1+(2))"), (True, None))

    def test_unbalanced(self):
        self.assertEqual(is_balanced("(1+2"), (False, 0))
        self.assertEqual(is_balanced("1)+2"), (False, 1))


if __name__ == "__main__":
    unittest.main()
