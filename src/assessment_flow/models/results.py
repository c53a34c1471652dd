"""Result models returned by the engine's analysis functions.

These are freshly constructed on every call; the engine keeps no reference
to them afterwards.
"""

from typing import Literal, Optional

from pydantic import BaseModel


class ValidationResult(BaseModel):
    """Outcome of checking required visible fields.

    ``errors`` maps field name to a human-readable message.
    """

    valid: bool
    errors: dict[str, str] = {}


class ReachabilityReport(BaseModel):
    """Which steps can be arrived at from the entry step.

    ``unreachable`` follows step-table order, not traversal order.
    """

    reachable: set[str] = set()
    unreachable: list[str] = []


IssueCode = Literal[
    "empty_group",
    "missing_step",
    "shared_step",
    "orphan_step",
    "id_mismatch",
    "duplicate_field",
    "dangling_destination",
    "unreachable_step",
]


class IntegrityIssue(BaseModel):
    """One authoring problem found by ``check_integrity``."""

    code: IssueCode
    step_id: Optional[str] = None
    message: str
