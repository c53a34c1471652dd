"""Visibility expression models — boolean trees over conditions.

A visibility expression decides whether a field is shown, and doubles as the
guard of a traversal rule.  Node kinds:

  - any: true if at least one operand is true (logical OR)
  - all: true if every operand is true (logical AND)
  - not: negation of a single operand
  - empty: a node carrying none of the three keys; always true

An *operand* is either a primitive condition or another expression, so trees
nest to any depth::

    {"any": [{"truthy": ["hasPet"]},
             {"all": [{"gte": ["age", 18]}, {"not": {"eq": ["renter", true]}}]}]}

When a raw node carries more than one combinator key, ``any`` wins over
``all``, which wins over ``not``; the other keys are ignored.

Like conditions, expressions dump back to the compact document shape.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Union

from pydantic import BaseModel, BeforeValidator, Field, TypeAdapter, model_serializer

from assessment_flow.constants import COMBINATOR_KEYS
from assessment_flow.models.condition import (
    EqCondition,
    FalsyCondition,
    GtCondition,
    GteCondition,
    InCondition,
    LtCondition,
    LteCondition,
    NeCondition,
    TruthyCondition,
    UnknownCondition,
    normalize_condition,
)

_EXPRESSION_TYPES = ("any", "all", "not", "empty")


class AnyOf(BaseModel):
    """Logical OR over operands.  An empty list is false."""

    type: Literal["any"] = "any"
    operands: List[Operand] = []

    @model_serializer
    def _compact(self) -> dict[str, Any]:
        return {"any": [op.model_dump() for op in self.operands]}


class AllOf(BaseModel):
    """Logical AND over operands.  An empty list is true."""

    type: Literal["all"] = "all"
    operands: List[Operand] = []

    @model_serializer
    def _compact(self) -> dict[str, Any]:
        return {"all": [op.model_dump() for op in self.operands]}


class Not(BaseModel):
    """Negation of a single operand."""

    type: Literal["not"] = "not"
    operand: Operand

    @model_serializer
    def _compact(self) -> dict[str, Any]:
        return {"not": self.operand.model_dump()}


class EmptyExpression(BaseModel):
    """A node with no combinator key; always true.

    ``raw`` keeps whatever keys the node did carry so dumping is lossless.
    """

    type: Literal["empty"] = "empty"
    raw: Dict[str, Any] = {}

    @model_serializer
    def _verbatim(self) -> dict[str, Any]:
        return dict(self.raw)


# ---------------------------------------------------------------------------
# Shape normalisation
# ---------------------------------------------------------------------------

def normalize_expression(raw: Any) -> Any:
    """Rewrite a raw expression node into the tagged ``type`` form."""
    if isinstance(raw, BaseModel):
        return raw
    if not isinstance(raw, dict):
        return {"type": "empty", "raw": {}}
    if raw.get("type") in _EXPRESSION_TYPES:
        return raw

    if isinstance(raw.get("any"), list):
        return {"type": "any", "operands": raw["any"]}
    if isinstance(raw.get("all"), list):
        return {"type": "all", "operands": raw["all"]}
    # Only scalar falsy values disable "not"; {} and [] still count as operands
    if raw.get("not") not in (None, False, 0, ""):
        return {"type": "not", "operand": raw["not"]}
    return {"type": "empty", "raw": raw}


def normalize_operand(raw: Any) -> Any:
    """Route a raw operand to the expression or the condition normaliser."""
    if isinstance(raw, BaseModel):
        return raw
    if isinstance(raw, dict):
        if raw.get("type") in ("any", "all", "not"):
            return raw
        if any(key in raw for key in COMBINATOR_KEYS):
            normalized = normalize_expression(raw)
            # A combinator key with an unusable value ("any": 3) reads as a
            # malformed condition, not as an always-true empty node.
            if normalized["type"] != "empty":
                return normalized
    return normalize_condition(raw)


Operand = Annotated[
    Union[
        EqCondition,
        NeCondition,
        GtCondition,
        GteCondition,
        LtCondition,
        LteCondition,
        InCondition,
        TruthyCondition,
        FalsyCondition,
        UnknownCondition,
        AnyOf,
        AllOf,
        Not,
    ],
    Field(discriminator="type"),
    BeforeValidator(normalize_operand),
]

ExpressionTypes = Union[AnyOf, AllOf, Not, EmptyExpression]

Expression = Annotated[
    ExpressionTypes,
    Field(discriminator="type"),
    BeforeValidator(normalize_expression),
]

AnyOf.model_rebuild()
AllOf.model_rebuild()
Not.model_rebuild()

_expression_adapter = TypeAdapter(Expression)


def parse_expression(raw: Any) -> ExpressionTypes:
    """Parse one raw visibility expression into its typed model."""
    return _expression_adapter.validate_python(raw)
