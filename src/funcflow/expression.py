"""Single-variable arithmetic expressions.

An equation is a string over ``x``, decimal literals and the binary
operators ``+ - * / ^``. A number written directly before ``x`` is an
implicit multiplication (``2x`` is ``2*x``). There are no parentheses,
functions, unary operators, or other variables.

Equations are tokenized and parsed by recursive descent into a small
immutable tree; nothing is ever compiled or executed as code. Whitespace
is removed before parsing, so ``validate`` and ``evaluate`` always see
the same text.

Example:
    >>> evaluate("2x+4", 1)
    6.0
    >>> validate("2x2").error
    'Invalid equation format: numbers on both sides of x are ambiguous'
"""

from __future__ import annotations

import functools
import logging
import math
import re
from collections.abc import Callable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext

from funcflow.exceptions import EvaluationError, ExpressionError, ExpressionSyntaxError

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

EMPTY_MESSAGE = "Equation cannot be empty"
CHARSET_MESSAGE = "Only numbers, x, and operators (+,-,*,/,^) are allowed"
FORMAT_MESSAGE = "Invalid equation format"

# Value substituted for x when checking that an equation evaluates at all
PLACEHOLDER_X = 1.0

_WHITESPACE_RE = re.compile(r"\s+")
_ALLOWED_CHARS_RE = re.compile(r"^[0-9x+\-*/^.]+$")

# Checked in order; the first match decides the message
_STRUCTURAL_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\.\."), "multiple decimal points in a row"),
    (re.compile(r"[+\-*/^]{2,}"), "operators cannot follow each other"),
    (re.compile(r"^\W"), "must start with a number or x"),
    (re.compile(r"[+*/^]$"), "cannot end with an operator"),
    (re.compile(r"\d+x\d+"), "numbers on both sides of x are ambiguous"),
)

_TOKEN_RE = re.compile(
    r"""
    (?P<NUMBER>\d+\.?\d*|\.\d+)
  | (?P<X>x)
  | (?P<OP>[+\-*/^])
  | (?P<MISMATCH>.)
    """,
    re.VERBOSE,
)

_ADDITIVE = frozenset("+-")
_MULTIPLICATIVE = frozenset("*/")


# =============================================================================
# Tokenizer
# =============================================================================


@dataclass(frozen=True)
class Token:
    kind: str
    value: str
    pos: int


def clean(expression: str) -> str:
    """Strip all whitespace from an equation."""
    return _WHITESPACE_RE.sub("", expression)


def tokenize(expression: str) -> list[Token]:
    """Split cleaned equation text into tokens.

    A NUMBER immediately followed by X gets an explicit ``*`` token
    between them.

    Raises:
        ExpressionSyntaxError: On any character outside the grammar
    """
    text = clean(expression)
    tokens: list[Token] = []
    for m in _TOKEN_RE.finditer(text):
        kind = m.lastgroup or "MISMATCH"
        value = m.group(0)
        if kind == "MISMATCH":
            raise ExpressionSyntaxError(
                expression, f"Unexpected character {value!r} at position {m.start()}"
            )
        if kind == "X" and tokens and tokens[-1].kind == "NUMBER":
            tokens.append(Token("OP", "*", m.start()))
        tokens.append(Token(kind, value, m.start()))
    tokens.append(Token("EOF", "", len(text)))
    return tokens


# =============================================================================
# Expression tree
# =============================================================================


class Expr:
    """Base class for parsed expression nodes."""

    def evaluate(self, x: float) -> float:
        raise NotImplementedError


@dataclass(frozen=True)
class Number(Expr):
    value: float

    def evaluate(self, x: float) -> float:
        return self.value


@dataclass(frozen=True)
class Variable(Expr):
    def evaluate(self, x: float) -> float:
        return x


@dataclass(frozen=True)
class Chain(Expr):
    """A run of same-precedence ``+ -`` or ``* /`` operators, applied left to right."""

    first: Expr
    rest: tuple[tuple[str, Expr], ...]

    def evaluate(self, x: float) -> float:
        value = self.first.evaluate(x)
        for op, operand in self.rest:
            value = _apply(op, value, operand.evaluate(x))
        return value


@dataclass(frozen=True)
class Power(Expr):
    """A run of ``^`` operators, applied right to left."""

    operands: tuple[Expr, ...]

    def evaluate(self, x: float) -> float:
        values = [operand.evaluate(x) for operand in self.operands]
        result = values[-1]
        for base in reversed(values[:-1]):
            result = _apply("^", base, result)
        return result


class _ArithmeticFailure(Exception):
    """Internal signal; re-raised as EvaluationError with the source text."""


def _apply(op: str, left: float, right: float) -> float:
    try:
        if op == "+":
            result = left + right
        elif op == "-":
            result = left - right
        elif op == "*":
            result = left * right
        elif op == "/":
            result = left / right
        else:
            result = left**right
    except ZeroDivisionError:
        raise _ArithmeticFailure("Division by zero") from None
    except OverflowError:
        raise _ArithmeticFailure("Result is too large") from None

    # A negative base with a fractional exponent yields a complex number
    if isinstance(result, complex):
        raise _ArithmeticFailure(f"{left} ^ {right} is not a real number")
    if not math.isfinite(result):
        raise _ArithmeticFailure("Result is not a finite number")
    return result


# =============================================================================
# Parser
# =============================================================================


class Parser:
    """Recursive-descent parser.

    Precedence, lowest first: ``+ -``, then ``* /``, then ``^``. The
    first two levels associate left to right, ``^`` right to left.
    Each level collects its whole operator run in a loop, so the tree is
    at most three levels deep however long the equation is.
    """

    def __init__(self, expression: str, tokens: list[Token]) -> None:
        self.expression = expression
        self.tokens = tokens
        self.i = 0

    def cur(self) -> Token:
        return self.tokens[self.i]

    def advance(self) -> Token:
        token = self.tokens[self.i]
        self.i += 1
        return token

    def error(self, message: str) -> ExpressionSyntaxError:
        return ExpressionSyntaxError(self.expression, message)

    def parse(self) -> Expr:
        expr = self.parse_sum()
        t = self.cur()
        if t.kind != "EOF":
            raise self.error(f"Unexpected {t.value!r} at position {t.pos}")
        return expr

    def parse_sum(self) -> Expr:
        return self._parse_chain(_ADDITIVE, self.parse_product)

    def parse_product(self) -> Expr:
        return self._parse_chain(_MULTIPLICATIVE, self.parse_power)

    def parse_power(self) -> Expr:
        operands = [self.parse_operand()]
        while self.cur().kind == "OP" and self.cur().value == "^":
            self.advance()
            operands.append(self.parse_operand())
        if len(operands) == 1:
            return operands[0]
        return Power(tuple(operands))

    def _parse_chain(self, ops: frozenset[str], parse_next: Callable[[], Expr]) -> Expr:
        first = parse_next()
        rest: list[tuple[str, Expr]] = []
        while self.cur().kind == "OP" and self.cur().value in ops:
            op = self.advance().value
            rest.append((op, parse_next()))
        if not rest:
            return first
        return Chain(first, tuple(rest))

    def parse_operand(self) -> Expr:
        t = self.cur()
        if t.kind == "NUMBER":
            self.advance()
            return Number(float(t.value))
        if t.kind == "X":
            self.advance()
            return Variable()
        if t.kind == "EOF":
            raise self.error("Unexpected end of equation")
        raise self.error(f"Expected a number or x at position {t.pos}, got {t.value!r}")


@functools.lru_cache(maxsize=256)
def parse(expression: str) -> Expr:
    """Parse equation text into an expression tree.

    Raises:
        ExpressionSyntaxError: If the text is not a well-formed equation
    """
    return Parser(expression, tokenize(expression)).parse()


# =============================================================================
# Public API
# =============================================================================


def round2(value: float) -> float:
    """Round half-up to 2 decimal places on the exact binary value."""
    with localcontext() as ctx:
        ctx.prec = 400
        rounded = Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return float(rounded) + 0.0  # normalise -0.0


def evaluate_strict(expression: str, x: float) -> float:
    """Evaluate an equation for the given x, rounded to 2 decimals.

    Raises:
        ExpressionSyntaxError: If the text is malformed
        EvaluationError: If the arithmetic fails or is non-finite
    """
    tree = parse(expression)
    try:
        result = tree.evaluate(float(x))
    except _ArithmeticFailure as e:
        raise EvaluationError(expression, str(e)) from None
    return round2(result)


def evaluate(expression: str, x: float) -> float:
    """Evaluate an equation, returning 0.0 if it cannot be evaluated.

    The 0.0 is an error sentinel, not a result. Callers that need to tell
    the two apart should use ``evaluate_strict``.
    """
    try:
        result = evaluate_strict(expression, x)
    except ExpressionError as e:
        logger.warning("Error evaluating %r with x=%s: %s", expression, x, e.message)
        return 0.0
    logger.debug("Expression: %s, x: %s, evaluated: %s", expression, x, result)
    return result


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of ``validate``. Truthy when the equation is valid."""

    is_valid: bool
    error: str | None = None

    def __bool__(self) -> bool:
        return self.is_valid


def validate(expression: str) -> ValidationResult:
    """Check an equation the way an editor would while the user types.

    Rules run in order and the first failure wins:

    1. Empty or whitespace only
    2. Characters outside digits, ``x``, ``.`` and ``+ - * / ^``
    3. Structural patterns: ``..``, repeated operators, a leading
       operator or ``.``, a trailing ``+ * / ^``, and ``2x2``-style
       numbers on both sides of x
    4. A trial evaluation at ``x = 1``
    """
    if not expression.strip():
        return ValidationResult(False, EMPTY_MESSAGE)

    text = clean(expression)
    if not _ALLOWED_CHARS_RE.match(text):
        return ValidationResult(False, CHARSET_MESSAGE)

    for pattern, detail in _STRUCTURAL_RULES:
        if pattern.search(text):
            return ValidationResult(False, f"{FORMAT_MESSAGE}: {detail}")

    try:
        evaluate_strict(text, PLACEHOLDER_X)
    except ExpressionError:
        return ValidationResult(False, FORMAT_MESSAGE)
    return ValidationResult(True)
