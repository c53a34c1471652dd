"""TraversalResolver — decides where a respondent goes after a step.

Resolution order for :meth:`TraversalResolver.resolve_next`:

  1. the step's traversal rules, in authored order; first true guard wins
  2. the step's fallback destination, if declared
  3. the natural-order successor: next step in the group, else the first
     step of the next non-empty group, else the terminal ``end``

:meth:`TraversalResolver.resolve_previous` mirrors step 3 only; rules are
directional and cannot be inverted.

If the step is not referenced by any group, both return ``None``.  Callers
must treat that as a broken reference and stop advancing.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from assessment_flow.evaluator import VisibilityEvaluator
from assessment_flow.models.assessment import (
    Assessment,
    Destination,
    EndDestination,
    Step,
    StepDestination,
)

logger = logging.getLogger(__name__)


class TraversalResolver:
    """Resolves next/previous destinations for a step.

    Args:
        evaluator: evaluator used for rule guards (a default one if omitted)
    """

    def __init__(self, evaluator: Optional[VisibilityEvaluator] = None) -> None:
        self._evaluator = evaluator or VisibilityEvaluator()

    def resolve_next(
        self,
        step: Step,
        answers: Mapping[str, Any],
        assessment: Assessment,
    ) -> Optional[Destination]:
        """Return the destination after ``step`` given the flat answer set."""
        for index, rule in enumerate(step.traversal):
            if self._evaluator.evaluate(rule.when, answers):
                logger.debug("Step %s: rule %d matched -> %r", step.id, index, rule.go)
                return rule.go

        if step.fallback_next is not None:
            logger.debug("Step %s: no rule matched, using fallback", step.id)
            return step.fallback_next

        return self.next_in_order(step.id, assessment)

    def resolve_previous(self, step: Step, assessment: Assessment) -> Optional[Destination]:
        """Return the natural-order predecessor of ``step``.

        None at the first step of the assessment, and None (logged) when the
        step is not found in any group.
        """
        return self.previous_in_order(step.id, assessment)

    # ------------------------------------------------------------------
    # Natural order
    # ------------------------------------------------------------------

    def next_in_order(self, step_id: str, assessment: Assessment) -> Optional[Destination]:
        """Natural-order successor of ``step_id``; None if it is not placed."""
        position = assessment.locate(step_id)
        if position is None:
            logger.warning("Step %s not found in any group of %s", step_id, assessment.id)
            return None

        gi, si = position
        group = assessment.groups[gi]
        if si + 1 < len(group.steps):
            return StepDestination(id=group.steps[si + 1].id)

        for later in assessment.groups[gi + 1:]:
            if later.steps:
                return StepDestination(id=later.steps[0].id)

        return EndDestination()

    def previous_in_order(self, step_id: str, assessment: Assessment) -> Optional[Destination]:
        """Natural-order predecessor of ``step_id``; None at the start or if unplaced."""
        position = assessment.locate(step_id)
        if position is None:
            logger.warning("Step %s not found in any group of %s", step_id, assessment.id)
            return None

        gi, si = position
        group = assessment.groups[gi]
        if si > 0:
            return StepDestination(id=group.steps[si - 1].id)

        for earlier in reversed(assessment.groups[:gi]):
            if earlier.steps:
                return StepDestination(id=earlier.steps[-1].id)

        # Beginning of the assessment
        return None


# ---------------------------------------------------------------------------
# Module-level API
# ---------------------------------------------------------------------------

_default = TraversalResolver()


def resolve_next(
    step: Step, answers: Mapping[str, Any], assessment: Assessment
) -> Optional[Destination]:
    """Resolve the next destination with the default resolver."""
    return _default.resolve_next(step, answers, assessment)


def resolve_previous(step: Step, assessment: Assessment) -> Optional[Destination]:
    """Resolve the previous destination with the default resolver."""
    return _default.resolve_previous(step, assessment)
