"""AssessmentSession — walks one respondent through an assessment in memory.

The session owns the respondent's answers, bucketed per step ``key``, and a
history of visited steps.  Each :meth:`AssessmentSession.submit`:

  1. validates the current step's visible required fields
  2. stores the answers under the step's key
  3. asks the :class:`TraversalResolver` for the next destination
  4. moves the cursor (or marks the session complete on ``end``)

Broken references (a step placed in no group, a destination naming a
missing step) raise ``ValueError``: the session halts rather than skipping.

Nothing here is persisted; hosts serialise :attr:`answers` themselves.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from assessment_flow.evaluator import VisibilityEvaluator
from assessment_flow.models.assessment import (
    Assessment,
    Destination,
    EndDestination,
    GroupDestination,
    Step,
    StepDestination,
)
from assessment_flow.traversal import TraversalResolver

logger = logging.getLogger(__name__)


def flatten_answers(
    step_answers: Mapping[str, Mapping[str, Any]],
    order: Optional[Iterable[str]] = None,
) -> dict[str, Any]:
    """Merge per-step answer buckets into one flat ``{field: value}`` map.

    Buckets are merged in ``order`` (bucket keys; defaults to the mapping's
    own order, which for a session is the order steps were first answered).
    A field written by an earlier bucket is not shadowed by a later one.
    """
    keys = list(order) if order is not None else list(step_answers)
    # Buckets not mentioned in order still contribute, after the ordered ones
    keys += [k for k in step_answers if k not in keys]

    flat: dict[str, Any] = {}
    for key in keys:
        for name, value in step_answers.get(key, {}).items():
            flat.setdefault(name, value)
    return flat


class AssessmentSession:
    """In-memory walk through one assessment.

    Args:
        assessment: the definition to walk (never mutated)
        evaluator: shared evaluator for visibility and validation
        resolver: shared resolver; built around ``evaluator`` if omitted

    Raises:
        ValueError: if the assessment has no usable entry step.
    """

    def __init__(
        self,
        assessment: Assessment,
        *,
        evaluator: Optional[VisibilityEvaluator] = None,
        resolver: Optional[TraversalResolver] = None,
    ) -> None:
        self._assessment = assessment
        self._evaluator = evaluator or VisibilityEvaluator()
        self._resolver = resolver or TraversalResolver(self._evaluator)

        entry = assessment.first_step_id()
        if entry is None:
            raise ValueError(f"Assessment {assessment.id} has no steps")
        self._require_step(entry)

        self.current_step_id: Optional[str] = entry
        self.answers: dict[str, dict[str, Any]] = {}
        self.history: list[str] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def assessment(self) -> Assessment:
        return self._assessment

    @property
    def is_complete(self) -> bool:
        return self.current_step_id is None

    @property
    def current_step(self) -> Optional[Step]:
        if self.current_step_id is None:
            return None
        return self._assessment.get_step(self.current_step_id)

    def answers_for(self, step: Step) -> dict[str, Any]:
        return dict(self.answers.get(step.key, {}))

    def flat_answers(self) -> dict[str, Any]:
        """All answers so far, flattened in the order steps were first answered."""
        return flatten_answers(self.answers)

    def visible_fields(self) -> list[str]:
        """Names of the current step's visible fields given current answers."""
        step = self.current_step
        if step is None:
            return []
        return self._evaluator.get_visible_fields(step.fields, self.flat_answers())

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def submit(self, values: Mapping[str, Any]) -> Destination:
        """Answer the current step and advance.

        Returns:
            The destination that was resolved.

        Raises:
            ValueError: if the session is complete, a visible required
                field is missing, or the flow hits a broken reference.
        """
        step = self.current_step
        if step is None:
            raise ValueError(f"Session for {self._assessment.id} is already complete")

        candidate = dict(self.answers)
        candidate[step.key] = dict(values)
        flat = flatten_answers(candidate)

        result = self._evaluator.validate_visible_fields(step.fields, flat)
        if not result.valid:
            raise ValueError(f"Invalid answers for step {step.id}: {result.errors}")

        self.answers = candidate
        dest = self._resolver.resolve_next(step, flat, self._assessment)
        if dest is None:
            raise ValueError(f"Step {step.id} is not placed in any group; cannot advance")

        target = self._target_of(dest)
        self.history.append(step.id)
        self.current_step_id = target
        logger.debug("Session %s: %s -> %r", self._assessment.id, step.id, dest)
        return dest

    def back(self) -> Step:
        """Return to the previously visited step and make it current.

        Uses the visit history; with no history, falls back to the natural
        order predecessor.

        Raises:
            ValueError: if already at the first step.
        """
        if self.history:
            self.current_step_id = self.history.pop()
            return self._require_step(self.current_step_id)

        step = self.current_step
        prev = self._resolver.resolve_previous(step, self._assessment) if step else None
        if prev is None:
            raise ValueError("Cannot step back: already at the first step")
        self.current_step_id = self._target_of(prev)
        return self._require_step(self.current_step_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_step(self, step_id: str) -> Step:
        step = self._assessment.get_step(step_id)
        if step is None:
            raise ValueError(f"Step not found: {step_id} in assessment {self._assessment.id}")
        return step

    def _target_of(self, dest: Destination) -> Optional[str]:
        """Map a destination to the next current step id (None for end)."""
        if isinstance(dest, EndDestination):
            return None
        if isinstance(dest, StepDestination):
            return self._require_step(dest.id).id
        if isinstance(dest, GroupDestination):
            # Reserved destination kind: enter the group at its first step
            for group in self._assessment.groups:
                if group.id == dest.id and group.steps:
                    return self._require_step(group.steps[0].id).id
            raise ValueError(f"Group not found or empty: {dest.id}")
        raise ValueError(f"Unknown destination: {dest!r}")
