"""ReachabilityAnalyzer — finds authored steps no respondent can ever reach.

Breadth-first search from the first step of the first group.  If that group
is empty there is no entry point and nothing is reachable, even when later
groups hold steps.  The successors of a step are the overlay of *every* way
out of it:

  - each traversal rule's destination, whatever its guard
  - the fallback destination
  - the natural-order successor

Guards are ignored on purpose: a step counts as reachable if some answer
history could lead there, not only the current one.  A rule whose guard can
never hold still makes its target reachable.

Each step is expanded at most once, so cyclic rules terminate.  ``end`` and
``group`` destinations close their branch.  A destination naming a step that
is missing from the table is recorded as reachable but not expanded;
``check_integrity`` reports it as dangling.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Optional

from assessment_flow.models.assessment import Assessment, Destination, Step, StepDestination
from assessment_flow.models.results import ReachabilityReport
from assessment_flow.traversal import TraversalResolver

logger = logging.getLogger(__name__)


class ReachabilityAnalyzer:
    """Computes the reachable/unreachable step partition of an assessment."""

    def __init__(self, resolver: Optional[TraversalResolver] = None) -> None:
        self._resolver = resolver or TraversalResolver()

    def successors(self, step: Step, assessment: Assessment) -> list[Destination]:
        """Every destination that can follow ``step``, in rule/fallback/natural order."""
        out: list[Destination] = [rule.go for rule in step.traversal]
        if step.fallback_next is not None:
            out.append(step.fallback_next)
        natural = self._resolver.next_in_order(step.id, assessment)
        if natural is not None:
            out.append(natural)
        return out

    @staticmethod
    def entry_step_id(assessment: Assessment) -> Optional[str]:
        """First step of the first group; None when that group is empty."""
        if not assessment.groups or not assessment.groups[0].steps:
            return None
        return assessment.groups[0].steps[0].id

    def analyze(self, assessment: Assessment) -> ReachabilityReport:
        reachable: set[str] = set()

        entry = self.entry_step_id(assessment)
        if entry is not None:
            reachable.add(entry)
            queue: deque[str] = deque([entry])
            visited: set[str] = set()

            while queue:
                step_id = queue.popleft()
                if step_id in visited:
                    continue
                visited.add(step_id)

                step = assessment.get_step(step_id)
                if step is None:
                    continue

                for dest in self.successors(step, assessment):
                    if not isinstance(dest, StepDestination):
                        continue
                    reachable.add(dest.id)
                    if dest.id not in visited:
                        queue.append(dest.id)

        unreachable = [sid for sid in assessment.steps if sid not in reachable]
        if unreachable:
            logger.debug("Assessment %s: unreachable steps %s", assessment.id, unreachable)
        return ReachabilityReport(reachable=reachable, unreachable=unreachable)


_default = ReachabilityAnalyzer()


def analyze(assessment: Assessment) -> ReachabilityReport:
    """Analyze reachability with the default analyzer."""
    return _default.analyze(assessment)
