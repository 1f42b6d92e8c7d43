"""Tests for equation parsing, evaluation and validation."""

import logging

import pytest

from funcflow.exceptions import EvaluationError, ExpressionSyntaxError
from funcflow.expression import (
    CHARSET_MESSAGE,
    EMPTY_MESSAGE,
    FORMAT_MESSAGE,
    clean,
    evaluate,
    evaluate_strict,
    parse,
    round2,
    tokenize,
    validate,
)


class TestEvaluate:
    """Test evaluate() on well-formed equations."""

    @pytest.mark.parametrize(
        "expression, x, expected",
        [
            ("x^2", 3, 9),
            ("2x+4", 1, 6),
            ("x/2", 4, 2),
            ("x-2", 12, 10),
            ("x^2+20", 5, 45),
        ],
    )
    def test_basic_equations(self, expression, x, expected):
        assert evaluate(expression, x) == expected

    def test_multiplication_before_addition(self):
        assert evaluate("2+3*x", 2) == 8

    def test_power_before_multiplication(self):
        """Implicit multiplication binds like *, below ^."""
        assert evaluate("2x^2", 3) == 18

    def test_subtraction_is_left_associative(self):
        assert evaluate("x-2-3", 10) == 5

    def test_division_is_left_associative(self):
        assert evaluate("x/2/5", 20) == 2

    def test_power_is_right_associative(self):
        assert evaluate("2^3^2", 0) == 512

    def test_decimal_literals(self):
        assert evaluate("1.5x", 2) == 3
        assert evaluate("x*0.1", 1) == 0.1
        assert evaluate("5.+x", 1) == 6

    def test_negative_x_is_substituted_as_a_value(self):
        """x^2 of a negative running value squares the whole number."""
        assert evaluate("x^2", -3) == 9
        assert evaluate("2x", -3) == -6

    def test_whitespace_is_ignored(self):
        assert evaluate(" 2 x + 4 ", 1) == 6

    def test_result_rounded_to_two_decimals(self):
        assert evaluate("x/3", 1) == 0.33
        assert evaluate("x/3", 2) == 0.67

    def test_rounding_is_half_up(self):
        """0.125 is exact in binary and rounds up, like toFixed(2)."""
        assert evaluate("x/8", 1) == 0.13


class TestEvaluateFailures:
    """Test that evaluation failures return 0 or raise in strict mode."""

    def test_division_by_zero_returns_zero(self):
        assert evaluate("x/0", 5) == 0.0

    def test_malformed_returns_zero(self):
        assert evaluate("x+", 1) == 0.0

    def test_failure_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="funcflow.expression"):
            evaluate("x/0", 1)
        assert "Division by zero" in caplog.text

    def test_strict_division_by_zero(self):
        with pytest.raises(EvaluationError) as exc_info:
            evaluate_strict("x/0", 5)
        assert exc_info.value.expression == "x/0"
        assert "Division by zero" in str(exc_info.value)

    def test_strict_overflow(self):
        with pytest.raises(EvaluationError):
            evaluate_strict("x^999", 10)

    def test_strict_negative_base_fractional_power(self):
        with pytest.raises(EvaluationError) as exc_info:
            evaluate_strict("x^0.5", -4)
        assert "not a real number" in str(exc_info.value)

    @pytest.mark.parametrize("expression", ["x+", "2x2", "xx", "x2", "(x)", "1.2.3", "", "+x"])
    def test_strict_syntax_errors(self, expression):
        with pytest.raises(ExpressionSyntaxError):
            evaluate_strict(expression, 1)


class TestTokenizer:
    """Test tokenization details."""

    def test_implicit_multiplication_inserted(self):
        kinds = [(t.kind, t.value) for t in tokenize("2x")]
        assert kinds == [("NUMBER", "2"), ("OP", "*"), ("X", "x"), ("EOF", "")]

    def test_unexpected_character(self):
        with pytest.raises(ExpressionSyntaxError) as exc_info:
            tokenize("2y")
        assert "'y'" in str(exc_info.value)

    def test_clean_strips_all_whitespace(self):
        assert clean(" x \t+ 1\n") == "x+1"

    def test_parse_is_cached(self):
        assert parse("x+1") is parse("x+1")


class TestRound2:
    def test_negative_zero_normalised(self):
        assert str(round2(-0.001)) == "0.0"

    def test_large_values(self):
        assert round2(1e300) == 1e300


class TestValidate:
    """Test the ordered validation rules."""

    @pytest.mark.parametrize("expression", ["x^2", "2x+4", "x-2", "x/2", "x^2+20", "0.5x", " x + 1 "])
    def test_accepts(self, expression):
        result = validate(expression)
        assert result.is_valid
        assert result.error is None
        assert bool(result) is True

    @pytest.mark.parametrize("expression", ["", "   "])
    def test_empty(self, expression):
        assert validate(expression).error == EMPTY_MESSAGE

    @pytest.mark.parametrize("expression", ["2y", "sin(x)", "X+1", "(x)"])
    def test_disallowed_characters(self, expression):
        assert validate(expression).error == CHARSET_MESSAGE

    @pytest.mark.parametrize(
        "expression, detail",
        [
            ("2..5x", "multiple decimal points in a row"),
            ("x++1", "operators cannot follow each other"),
            ("x*-1", "operators cannot follow each other"),
            ("+x", "must start with a number or x"),
            (".5x", "must start with a number or x"),
            ("2x+", "cannot end with an operator"),
            ("x^", "cannot end with an operator"),
            ("2x2", "numbers on both sides of x are ambiguous"),
        ],
    )
    def test_structural_rejects(self, expression, detail):
        result = validate(expression)
        assert not result
        assert result.error == f"{FORMAT_MESSAGE}: {detail}"

    def test_trailing_minus_fails_trial_evaluation(self):
        """A trailing '-' passes the pattern checks but not evaluation."""
        assert validate("x-").error == FORMAT_MESSAGE

    def test_malformed_number_fails_trial_evaluation(self):
        assert validate("1.2.3").error == FORMAT_MESSAGE

    def test_division_by_constant_zero_is_invalid(self):
        assert validate("x/0").error == FORMAT_MESSAGE

    def test_rules_each_have_distinct_messages(self):
        errors = {
            validate("").error,
            validate("2y").error,
            validate("x++1").error,
            validate("x-").error,
        }
        assert len(errors) == 4

    @pytest.mark.parametrize("expression", ["x^2", "2x+4", "x-2", "x/2", "3x^2-x/4"])
    def test_accepted_equations_evaluate_the_same_every_time(self, expression):
        assert validate(expression)
        first = evaluate(expression, 7)
        assert evaluate(expression, 7) == first
        assert evaluate_strict(clean(expression), 7) == first


class TestLongEquations:
    """Equation length does not change how failures and results surface."""

    LONG_SUM = "+".join(["x"] * 3000)
    LONG_POWER = "^".join(["1"] * 3000)

    def test_long_sum_evaluates(self):
        assert evaluate(self.LONG_SUM, 1) == 3000

    def test_long_power_chain_evaluates(self):
        assert evaluate(self.LONG_POWER, 1) == 1

    def test_long_product_evaluates(self):
        assert evaluate("*".join(["x"] * 3000), 1) == 1

    def test_long_sum_validates(self):
        assert validate(self.LONG_SUM).is_valid
        assert validate(self.LONG_POWER).is_valid

    def test_long_failing_equation_returns_zero(self):
        assert evaluate(self.LONG_SUM + "/0", 1) == 0.0
        assert validate(self.LONG_SUM + "/0").error == FORMAT_MESSAGE

    def test_long_equation_in_pipeline(self):
        from funcflow.graph import Pipeline

        pipeline = Pipeline.seed()
        assert pipeline.set_equation(3, self.LONG_SUM)
        assert pipeline.final_output == 15000
