"""Authoring-time integrity checks for an assessment definition.

Parsing accepts structurally broken documents so that they can be opened
and repaired.  :func:`check_integrity` lists what is wrong with one:

  - empty_group: a group with no step references
  - missing_step: a group references an id absent from the step table
  - shared_step: the same step id is placed at more than one position
  - orphan_step: a table entry that no group references
  - id_mismatch: the table key differs from the step's own id
  - duplicate_field: a field name repeated within one step
  - dangling_destination: a rule or fallback targets an unknown step
  - unreachable_step: no path from the entry step leads here

Issues are returned in that order, never raised.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Optional

from assessment_flow.models.assessment import Assessment, StepDestination
from assessment_flow.models.results import IntegrityIssue
from assessment_flow.reachability import ReachabilityAnalyzer

logger = logging.getLogger(__name__)


def check_integrity(
    assessment: Assessment,
    analyzer: Optional[ReachabilityAnalyzer] = None,
) -> list[IntegrityIssue]:
    """Return every integrity issue found in ``assessment`` (empty if sound)."""
    issues: list[IntegrityIssue] = []
    placed = assessment.ordered_step_ids()

    # --- Group structure ---
    for group in assessment.groups:
        if not group.steps:
            issues.append(IntegrityIssue(
                code="empty_group",
                message=f"Group '{group.id}' has no steps",
            ))

    for step_id in dict.fromkeys(placed):
        if step_id not in assessment.steps:
            issues.append(IntegrityIssue(
                code="missing_step",
                step_id=step_id,
                message=f"Group entry '{step_id}' has no matching step",
            ))

    for step_id, count in Counter(placed).items():
        if count > 1:
            issues.append(IntegrityIssue(
                code="shared_step",
                step_id=step_id,
                message=f"Step '{step_id}' is placed {count} times",
            ))

    placed_set = set(placed)
    for step_id in assessment.steps:
        if step_id not in placed_set:
            issues.append(IntegrityIssue(
                code="orphan_step",
                step_id=step_id,
                message=f"Step '{step_id}' is not placed in any group",
            ))

    # --- Step contents ---
    for table_key, step in assessment.steps.items():
        if step.id != table_key:
            issues.append(IntegrityIssue(
                code="id_mismatch",
                step_id=table_key,
                message=f"Step stored under '{table_key}' declares id '{step.id}'",
            ))

    for table_key, step in assessment.steps.items():
        for name, count in Counter(step.field_names).items():
            if count > 1:
                issues.append(IntegrityIssue(
                    code="duplicate_field",
                    step_id=table_key,
                    message=f"Field '{name}' appears {count} times in step '{table_key}'",
                ))

    for table_key, step in assessment.steps.items():
        targets = [(f"rule {i + 1}", rule.go) for i, rule in enumerate(step.traversal)]
        if step.fallback_next is not None:
            targets.append(("fallback", step.fallback_next))
        for source, dest in targets:
            if isinstance(dest, StepDestination) and dest.id not in assessment.steps:
                issues.append(IntegrityIssue(
                    code="dangling_destination",
                    step_id=table_key,
                    message=f"Step '{table_key}' {source} targets unknown step '{dest.id}'",
                ))

    # --- Flow ---
    report = (analyzer or ReachabilityAnalyzer()).analyze(assessment)
    for step_id in report.unreachable:
        issues.append(IntegrityIssue(
            code="unreachable_step",
            step_id=step_id,
            message=f"Step '{step_id}' cannot be reached from the entry step",
        ))

    if issues:
        logger.info("Assessment %s: %d integrity issue(s)", assessment.id, len(issues))
    return issues
