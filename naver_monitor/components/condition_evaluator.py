"""
Boolean keyword condition evaluation.

A condition is free text combining keyword fragments with ``AND``, ``OR``
and parentheses, e.g. ``"(삼성 OR 애플) AND 출시"``. Conditions are evaluated
in a single left-to-right pass with a running operator rather than with
operator precedence: each operand is folded into the running result using
whichever operator was seen last, starting from ``False`` and ``OR``. So
``"A OR B AND C"`` means ``(A OR B) AND C`` and ``"A AND B OR C"`` means
``(A AND B) OR C``. Existing condition sheets rely on this behaviour.
"""

import logging
import re
from typing import List

from ..models.condition import EvalFailed, EvalOutcome, Matched
from ..models.post import Post
from ..utils.error_handling import (
    ConditionEvalError,
    ErrorCategory,
    ErrorSeverity,
    get_error_tracker,
)

logger = logging.getLogger(__name__)

AND = "AND"
OR = "OR"

# Word boundaries are ASCII only, so operators split cleanly from Hangul
_DELIMITERS = re.compile(r"(\(|\)|\bAND\b|\bOR\b)", re.ASCII)

MAX_NESTING_DEPTH = 32


def apply_logic(current: bool, following: bool, operation: str) -> bool:
    """Fold ``following`` into ``current``; anything but AND falls back to OR."""
    if operation == AND:
        return current and following
    return current or following


def tokenize(condition: str) -> List[str]:
    """
    Split a condition into operators, keyword fragments and groups.

    Operators are returned as ``"AND"``/``"OR"``. A balanced parenthesized
    region is returned whole, parentheses included, with its inner text
    untouched. Keyword fragments are trimmed and empty ones dropped.

    Raises:
        ConditionEvalError: On an unmatched ``)`` or an unclosed ``(``
    """
    tokens: List[str] = []
    group: List[str] = []
    depth = 0

    for part in _DELIMITERS.split(condition):
        if part == "(":
            if depth > 0:
                group.append(part)
            depth += 1
        elif part == ")":
            if depth == 0:
                raise ConditionEvalError("unmatched ')'")
            depth -= 1
            if depth == 0:
                tokens.append("(" + "".join(group) + ")")
                group = []
            else:
                group.append(part)
        elif depth > 0:
            group.append(part)
        else:
            fragment = part.strip()
            if fragment:
                tokens.append(fragment)

    if depth > 0:
        raise ConditionEvalError("unclosed '('")

    return tokens


class ConditionEvaluator:
    """Evaluates keyword conditions against posts."""

    def __init__(self, max_depth: int = MAX_NESTING_DEPTH):
        self.max_depth = max_depth

    def evaluate(self, condition: str, post: Post) -> bool:
        """Return True if ``post`` satisfies ``condition``; failures count as False."""
        return self.evaluate_outcome(condition, post).matched

    def evaluate_outcome(self, condition: str, post: Post) -> EvalOutcome:
        """
        Evaluate a condition, reporting malformed input instead of raising.

        Returns:
            Matched(value) when evaluation completed, EvalFailed(reason) otherwise
        """
        try:
            if not condition or not condition.strip():
                raise ConditionEvalError("empty condition")

            return Matched(self._evaluate(condition, post, 0))

        except Exception as e:
            reason = str(e) or type(e).__name__
            logger.warning(f"Error evaluating condition: {condition!r} ({reason})")
            get_error_tracker().record_error(
                component="condition_evaluator",
                category=ErrorCategory.CONDITION_EVALUATION,
                severity=ErrorSeverity.LOW,
                message=f"Error evaluating condition: {condition}",
                exception=e,
                context={"condition": condition},
            )
            return EvalFailed(reason)

    def _evaluate(self, condition: str, post: Post, depth: int) -> bool:
        if depth > self.max_depth:
            raise ConditionEvalError(
                f"parentheses nested deeper than {self.max_depth} levels"
            )

        result = False
        operation = OR

        for token in tokenize(condition):
            if token == AND or token == OR:
                operation = token
            elif token.startswith("(") and token.endswith(")"):
                nested = token[1:-1]
                if not nested.strip():
                    raise ConditionEvalError("empty parentheses")
                result = apply_logic(
                    result, self._evaluate(nested, post, depth + 1), operation
                )
            else:
                result = apply_logic(result, post.contains(token), operation)

        return result
