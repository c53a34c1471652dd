"""Condition models — primitive predicates over a single collected answer.

Each condition kind is its own Pydantic class so the evaluator can dispatch
on a closed set of variants:

  - eq, ne: strict equality / inequality against a literal
  - gt, gte, lt, lte: numeric comparisons (the answer is coerced to a number)
  - in: strict membership in a literal list
  - truthy, falsy: truthiness of the answer (see ``evaluator.is_truthy``)
  - unknown: any malformed shape; always evaluates to True

Documents use the compact shape ``{"eq": ["age", 5]}``.  The longer
``{"type": "eq", "field": "age", "value": 5}`` shape (with ``values`` for
``in``) is accepted as well.  Conditions always dump back to the compact
shape, so a parse/dump cycle is stable.

The discriminated ``Condition`` union uses ``type`` as its discriminator;
``normalize_condition`` runs first and rewrites whatever shape arrives into
the tagged form, routing anything it cannot read to ``UnknownCondition``.
"""

from __future__ import annotations

from typing import Annotated, Any, List, Literal, Union

from pydantic import BaseModel, BeforeValidator, Field, TypeAdapter, model_serializer

from assessment_flow.constants import CONDITION_OPS

_BINARY_OPS = ("eq", "ne", "gt", "gte", "lt", "lte", "in")
_ORDERING_OPS = ("gt", "gte", "lt", "lte")
_UNARY_OPS = ("truthy", "falsy")


# --- Equality ---

class EqCondition(BaseModel):
    """True when the answer strictly equals ``value``."""

    type: Literal["eq"] = "eq"
    field: str
    value: Any = None

    @model_serializer
    def _compact(self) -> dict[str, Any]:
        return {"eq": [self.field, self.value]}


class NeCondition(BaseModel):
    """True when the answer does not strictly equal ``value``."""

    type: Literal["ne"] = "ne"
    field: str
    value: Any = None

    @model_serializer
    def _compact(self) -> dict[str, Any]:
        return {"ne": [self.field, self.value]}


# --- Numeric ordering ---

class GtCondition(BaseModel):
    type: Literal["gt"] = "gt"
    field: str
    value: Union[int, float]

    @model_serializer
    def _compact(self) -> dict[str, Any]:
        return {"gt": [self.field, self.value]}


class GteCondition(BaseModel):
    type: Literal["gte"] = "gte"
    field: str
    value: Union[int, float]

    @model_serializer
    def _compact(self) -> dict[str, Any]:
        return {"gte": [self.field, self.value]}


class LtCondition(BaseModel):
    type: Literal["lt"] = "lt"
    field: str
    value: Union[int, float]

    @model_serializer
    def _compact(self) -> dict[str, Any]:
        return {"lt": [self.field, self.value]}


class LteCondition(BaseModel):
    type: Literal["lte"] = "lte"
    field: str
    value: Union[int, float]

    @model_serializer
    def _compact(self) -> dict[str, Any]:
        return {"lte": [self.field, self.value]}


# --- Membership ---

class InCondition(BaseModel):
    """True when the answer strictly equals one of ``values``."""

    type: Literal["in"] = "in"
    field: str
    values: List[Any] = []

    @model_serializer
    def _compact(self) -> dict[str, Any]:
        return {"in": [self.field, list(self.values)]}


# --- Truthiness ---

class TruthyCondition(BaseModel):
    type: Literal["truthy"] = "truthy"
    field: str

    @model_serializer
    def _compact(self) -> dict[str, Any]:
        return {"truthy": [self.field]}


class FalsyCondition(BaseModel):
    type: Literal["falsy"] = "falsy"
    field: str

    @model_serializer
    def _compact(self) -> dict[str, Any]:
        return {"falsy": [self.field]}


# --- Permissive fallback ---

class UnknownCondition(BaseModel):
    """A condition shape the parser could not read.

    Kept (rather than rejected) so that loading never fails on a malformed
    rule.  The evaluator treats it as True.  ``raw`` is dumped back verbatim.
    """

    type: Literal["unknown"] = "unknown"
    raw: Any = None

    @model_serializer
    def _verbatim(self) -> Any:
        return self.raw


# ---------------------------------------------------------------------------
# Shape normalisation
# ---------------------------------------------------------------------------

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _from_args(op: str, args: list, raw: Any) -> dict[str, Any]:
    """Build the tagged dict for ``op`` from its positional arguments.

    Wrong arity, a non-string field name, a non-numeric ordering literal or a
    non-list ``in`` set all make the shape malformed.
    """
    unknown = {"type": "unknown", "raw": raw}
    arity = 1 if op in _UNARY_OPS else 2
    if len(args) != arity or not isinstance(args[0], str):
        return unknown

    field = args[0]
    if op in _UNARY_OPS:
        return {"type": op, "field": field}
    if op == "in":
        if not isinstance(args[1], list):
            return unknown
        return {"type": "in", "field": field, "values": args[1]}
    if op in _ORDERING_OPS and not _is_number(args[1]):
        return unknown
    return {"type": op, "field": field, "value": args[1]}


def normalize_condition(raw: Any) -> Any:
    """Rewrite any accepted condition shape into the tagged ``type`` form."""
    if isinstance(raw, BaseModel):
        return raw
    if not isinstance(raw, dict):
        return {"type": "unknown", "raw": raw}

    # Long form: {"type": "eq", "field": ..., "value": ...}
    op = raw.get("type")
    if op == "unknown":
        return raw
    if op in CONDITION_OPS and "field" in raw:
        if op in _UNARY_OPS:
            args = [raw["field"]]
        elif op == "in":
            args = [raw["field"], raw.get("values", raw.get("value"))]
        else:
            args = [raw["field"], raw.get("value")]
        return _from_args(op, args, raw)

    # Compact form: first recognised key holding a list wins
    for op in CONDITION_OPS:
        if isinstance(raw.get(op), list):
            return _from_args(op, raw[op], raw)

    return {"type": "unknown", "raw": raw}


# Closed union of every condition variant.
ConditionTypes = Union[
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
]

Condition = Annotated[
    ConditionTypes,
    Field(discriminator="type"),
    BeforeValidator(normalize_condition),
]

_condition_adapter = TypeAdapter(Condition)


def parse_condition(raw: Any) -> ConditionTypes:
    """Parse one raw condition (any accepted shape) into its typed model."""
    return _condition_adapter.validate_python(raw)
