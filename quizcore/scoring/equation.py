"""
Math-equation scorer.

Both expressions are parsed into sympy expressions and compared
structurally. When that fails and partial credit is enabled, a fixed set of
sample values is substituted for every free symbol and the two expressions
are compared numerically at each sample.

Learner input goes through ``parse_expr`` (which evaluates code), so parsing
runs against a restricted namespace, a character allow-list and an exponent
bound.
"""

from __future__ import annotations

import math
import re
from tokenize import TokenError

import sympy
from sympy.parsing.sympy_parser import (
    auto_number,
    auto_symbol,
    convert_xor,
    implicit_multiplication_application,
    parse_expr,
)

from quizcore.errors import MalformedAnswerError
from quizcore.models import Answer, Question, QuestionType

from . import register
from .base import ScoreResult, ScoringContext, award, require_content

MAX_EXPRESSION_LENGTH = 256
MAX_EXPONENT = 1000

_ALLOWED_CHARS = re.compile(r"^[0-9A-Za-z\s.+\-*/^(),]*$")
_ATTRIBUTE_ACCESS = re.compile(r"[A-Za-z)]\s*\.")

_TRANSFORMATIONS = (auto_symbol, auto_number, implicit_multiplication_application, convert_xor)

_NAMESPACE = {
    "Add": sympy.Add,
    "Mul": sympy.Mul,
    "Pow": sympy.Pow,
    "Integer": sympy.Integer,
    "Float": sympy.Float,
    "Rational": sympy.Rational,
    "Symbol": sympy.Symbol,
    "Function": sympy.Function,
    "sin": sympy.sin,
    "cos": sympy.cos,
    "tan": sympy.tan,
    "sqrt": sympy.sqrt,
    "log": sympy.log,
    "ln": sympy.log,
    "exp": sympy.exp,
    "abs": sympy.Abs,
    "Abs": sympy.Abs,
    "pi": sympy.pi,
    "E": sympy.E,
}


def parse_expression(text: str) -> sympy.Expr:
    """
    Parse a learner or reference expression.

    ``^`` is read as a power and implicit multiplication (``2x``) is allowed.

    Raises:
        MalformedAnswerError: If the text is not an acceptable expression
    """
    if not isinstance(text, str) or not text.strip():
        raise MalformedAnswerError("Expression is empty")
    if len(text) > MAX_EXPRESSION_LENGTH:
        raise MalformedAnswerError("Expression is too long")
    if not _ALLOWED_CHARS.match(text) or _ATTRIBUTE_ACCESS.search(text):
        raise MalformedAnswerError(f"Expression contains unsupported characters: {text!r}")

    try:
        unevaluated = parse_expr(
            text,
            local_dict={},
            global_dict=dict(_NAMESPACE),
            transformations=_TRANSFORMATIONS,
            evaluate=False,
        )
        _check_exponents(unevaluated)
        expression = parse_expr(
            text,
            local_dict={},
            global_dict=dict(_NAMESPACE),
            transformations=_TRANSFORMATIONS,
        )
    except MalformedAnswerError:
        raise
    except (
        SyntaxError,
        TokenError,
        NameError,
        TypeError,
        ValueError,
        AttributeError,
        sympy.SympifyError,
    ) as exc:
        raise MalformedAnswerError(f"Cannot parse expression {text!r}: {exc}") from exc

    if not isinstance(expression, sympy.Expr):
        raise MalformedAnswerError(f"Not an algebraic expression: {text!r}")
    return expression


def _check_exponents(expression: sympy.Basic) -> float:
    """
    Reject numeric powers whose combined exponent exceeds MAX_EXPONENT.

    Exponents multiply along nested powers, so ``(9^1000)^1000`` weighs
    1000000. Returns the largest combined exponent found below ``expression``.
    """
    # Children first so an exponent is bounded before it is evaluated
    child_weights = [_check_exponents(arg) for arg in expression.args]
    weight = max(child_weights, default=1.0)
    if not isinstance(expression, sympy.Pow) or expression.exp.free_symbols:
        return weight

    combined = abs(complex(expression.exp.evalf())) * max(1.0, child_weights[0])
    if combined > MAX_EXPONENT:
        raise MalformedAnswerError(f"Exponent too large: {expression.exp}")
    return max(weight, combined)


def evaluate_at(expression: sympy.Expr, symbols: set[sympy.Symbol], value: float) -> float | None:
    """Value of the expression with every symbol set to ``value``; None when undefined."""
    try:
        result = float(expression.subs({symbol: value for symbol in symbols}).evalf())
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    return result if math.isfinite(result) else None


def sample_agreement(
    reference: sympy.Expr,
    submitted: sympy.Expr,
    samples: tuple[float, ...] | list[float],
    tolerance: float,
) -> int:
    """
    Count samples where both expressions agree within tolerance.

    A sample where both sides are undefined counts as agreement; one side
    undefined counts as disagreement.
    """
    symbols = reference.free_symbols | submitted.free_symbols
    matching = 0
    for value in samples:
        expected = evaluate_at(reference, symbols, value)
        actual = evaluate_at(submitted, symbols, value)
        if expected is None or actual is None:
            matching += expected is None and actual is None
        elif abs(expected - actual) <= tolerance:
            matching += 1
    return matching


@register(QuestionType.MATH_EQUATION)
def score_math_equation(question: Question, answer: Answer, context: ScoringContext) -> ScoreResult:
    """Structural equality first, numeric sampling as the partial-credit fallback."""
    reference = parse_expression(require_content(question, "correct_answer", str))
    submitted = parse_expression(answer.response)

    if reference == submitted:
        return award(question, 1.0, True, details={"method": "symbolic"})

    if not question.scoring.partial_credit:
        return award(question, 0.0, False, details={"method": "symbolic"})

    samples = tuple(context.math_sample_points)
    tolerance = question.scoring.tolerance
    if tolerance is None:
        tolerance = context.math_tolerance
    matching = sample_agreement(reference, submitted, samples, tolerance)

    return award(
        question,
        matching / len(samples),
        matching == len(samples),
        feedback=f"Your expression agrees at {matching}/{len(samples)} sample points.",
        details={"method": "sampling", "matching_samples": matching, "samples": len(samples)},
    )
