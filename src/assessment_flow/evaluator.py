"""VisibilityEvaluator — decides conditions, expressions and field visibility.

The evaluator is pure: it reads a condition or expression tree plus a flat
answer map and returns a boolean.  It never raises on bad input:

  - a malformed condition (``UnknownCondition``) or an empty expression node
    evaluates to True
  - a numeric comparison whose answer cannot be read as a number is False
  - a missing answer key reads as ``None``

Truthiness and number coercion follow a fixed table (``is_truthy`` and
``to_number``) rather than Python's own ``bool()``/``float()`` so that
assessments behave identically wherever they are evaluated.  Notably an
empty list is *truthy*, ``"0"`` is truthy, and ``0`` / ``""`` are falsy.

The module-level functions (``evaluate_condition``, ``evaluate_visibility``,
``get_visible_fields``, ``validate_visible_fields``) delegate to a shared
default evaluator.
"""

from __future__ import annotations

import logging
import math
import re
from numbers import Real
from typing import Any, Iterable, Mapping, get_args

from pydantic import BaseModel

from assessment_flow.constants import BOOLEAN_FIELD_TYPES, DEFAULT_REQUIRED_MESSAGE
from assessment_flow.models.assessment import FormField
from assessment_flow.models.condition import ConditionTypes, UnknownCondition, parse_condition
from assessment_flow.models.expression import AllOf, AnyOf, EmptyExpression, Not, parse_expression
from assessment_flow.models.results import ValidationResult

logger = logging.getLogger(__name__)

# Plain decimal literal, optional sign and exponent ("12", "-3.5", ".5", "1e3").
_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

_EXPRESSION_TYPES = (AnyOf, AllOf, Not, EmptyExpression)
_CONDITION_TYPES = get_args(ConditionTypes)


# ---------------------------------------------------------------------------
# Value semantics
# ---------------------------------------------------------------------------

def is_truthy(value: Any) -> bool:
    """Truthiness of an answer value.

    ============================  =======
    value                         result
    ============================  =======
    None (or missing key)         False
    False                         False
    0, 0.0, NaN                   False
    ""                            False
    True                          True
    non-zero number               True
    non-empty string (incl "0")   True
    [] / {} / any collection      True
    anything else                 True
    ============================  =======
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, Real):
        return value != 0 and not math.isnan(value)
    if isinstance(value, str):
        return value != ""
    return True


def to_number(value: Any) -> float:
    """Coerce an answer to a float for ordering comparisons; NaN if impossible.

    Booleans count as 1/0 and numeric strings are parsed (surrounding
    whitespace allowed).  Missing values, blank strings and collections
    are not numbers.

    Unlike JavaScript's ``Number()``, which reads ``null`` and ``""`` as 0,
    ``None`` and blank strings give NaN here, so an unanswered field never
    satisfies ``lte 0`` or any other ordering comparison.
    """
    if value is None:
        return math.nan
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, Real):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if _NUMBER_RE.match(text):
            return float(text)
    return math.nan


def strict_equals(left: Any, right: Any) -> bool:
    """Equality without type coercion.

    Booleans never equal numbers (``True != 1``), strings never equal
    numbers (``"5" != 5``).  Lists and dicts compare structurally, element
    by element, with the same rules; list order matters.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, Real) and isinstance(right, Real):
        return left == right
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(
            strict_equals(a, b) for a, b in zip(left, right)
        )
    if isinstance(left, dict) and isinstance(right, dict):
        return left.keys() == right.keys() and all(
            strict_equals(left[k], right[k]) for k in left
        )
    return type(left) is type(right) and left == right


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------

class VisibilityEvaluator:
    """Evaluates conditions and visibility expressions against an answer map.

    Args:
        required_message: template for missing required fields; receives
            ``{label}`` and ``{name}``.
    """

    def __init__(self, required_message: str = DEFAULT_REQUIRED_MESSAGE) -> None:
        self._required_message = required_message

    # ------------------------------------------------------------------
    # Conditions
    # ------------------------------------------------------------------

    def evaluate_condition(self, condition: Any, answers: Mapping[str, Any]) -> bool:
        """Evaluate one primitive condition.

        Raw dicts are parsed first, so hosts may pass document fragments
        directly.  An expression model is evaluated as an expression; any
        other model that is not a condition counts as true.
        """
        if not isinstance(condition, BaseModel):
            condition = parse_condition(condition)

        if isinstance(condition, _EXPRESSION_TYPES):
            return self.evaluate(condition, answers)
        if not isinstance(condition, _CONDITION_TYPES):
            logger.debug("Not a condition: %r, assuming true", condition)
            return True
        if isinstance(condition, UnknownCondition):
            logger.debug("Malformed condition %r, assuming true", condition.raw)
            return True

        op = condition.type
        answer = answers.get(condition.field)

        if op == "eq":
            return strict_equals(answer, condition.value)
        if op == "ne":
            return not strict_equals(answer, condition.value)

        # --- Numeric comparisons ---
        if op in ("gt", "gte", "lt", "lte"):
            number = to_number(answer)
            if math.isnan(number):
                return False
            if op == "gt":
                return number > condition.value
            if op == "gte":
                return number >= condition.value
            if op == "lt":
                return number < condition.value
            return number <= condition.value

        if op == "in":
            return any(strict_equals(answer, member) for member in condition.values)

        if op == "truthy":
            return is_truthy(answer)
        if op == "falsy":
            return not is_truthy(answer)

        logger.debug("Unrecognised condition type %r, assuming true", op)
        return True

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def evaluate(self, expression: Any, answers: Mapping[str, Any]) -> bool:
        """Evaluate a visibility expression.  ``None`` means always visible."""
        if expression is None:
            return True
        if not isinstance(expression, BaseModel):
            expression = parse_expression(expression)

        if isinstance(expression, AnyOf):
            return any(self._evaluate_operand(op, answers) for op in expression.operands)
        if isinstance(expression, AllOf):
            return all(self._evaluate_operand(op, answers) for op in expression.operands)
        if isinstance(expression, Not):
            return not self._evaluate_operand(expression.operand, answers)
        if isinstance(expression, EmptyExpression):
            return True

        # A bare condition handed in where an expression was expected
        return self.evaluate_condition(expression, answers)

    def _evaluate_operand(self, operand: BaseModel, answers: Mapping[str, Any]) -> bool:
        if isinstance(operand, _EXPRESSION_TYPES):
            return self.evaluate(operand, answers)
        return self.evaluate_condition(operand, answers)

    # ------------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------------

    def is_visible(self, field: FormField, answers: Mapping[str, Any]) -> bool:
        return self.evaluate(field.visibility, answers)

    def get_visible_fields(
        self, fields: Iterable[FormField], answers: Mapping[str, Any]
    ) -> list[str]:
        """Names of the fields currently visible, in declared order."""
        return [f.name for f in fields if self.is_visible(f, answers)]

    def validate_visible_fields(
        self, fields: Iterable[FormField], answers: Mapping[str, Any]
    ) -> ValidationResult:
        """Flag every visible required field that has no usable answer.

        A value is missing when it is None/absent or a blank string.  A
        checkbox without options is a yes/no toggle and must be exactly
        True; a checkbox with options is multi-choice and needs at least
        one selection.  Hidden fields are never flagged.
        """
        errors: dict[str, str] = {}

        for field in fields:
            if not field.required or not self.is_visible(field, answers):
                continue
            if self._is_missing(field, answers.get(field.name)):
                errors[field.name] = self._required_message.format(
                    label=field.label, name=field.name
                )

        return ValidationResult(valid=not errors, errors=errors)

    @staticmethod
    def _is_missing(field: FormField, value: Any) -> bool:
        if field.type in BOOLEAN_FIELD_TYPES:
            if field.options:
                return not isinstance(value, (list, tuple, set)) or len(value) == 0
            return value is not True
        if value is None:
            return True
        if isinstance(value, str):
            return value.strip() == ""
        return False


# ---------------------------------------------------------------------------
# Module-level API
# ---------------------------------------------------------------------------

_default = VisibilityEvaluator()


def evaluate_condition(condition: Any, answers: Mapping[str, Any]) -> bool:
    """Evaluate one condition with the default evaluator."""
    return _default.evaluate_condition(condition, answers)


def evaluate_visibility(expression: Any, answers: Mapping[str, Any]) -> bool:
    """Evaluate a visibility expression with the default evaluator."""
    return _default.evaluate(expression, answers)


def get_visible_fields(fields: Iterable[FormField], answers: Mapping[str, Any]) -> list[str]:
    return _default.get_visible_fields(fields, answers)


def validate_visible_fields(
    fields: Iterable[FormField], answers: Mapping[str, Any]
) -> ValidationResult:
    return _default.validate_visible_fields(fields, answers)
