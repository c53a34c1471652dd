from __future__ import annotations

from typing import Any, Dict, List, Optional

from assessment_flow.constants import END_NODE_ID
from assessment_flow.models.assessment import Assessment, Destination, EndDestination, StepDestination
from assessment_flow.models.results import ReachabilityReport
from assessment_flow.reachability import ReachabilityAnalyzer
from assessment_flow.traversal import TraversalResolver


def _group_node_id(group_id: str) -> str:
    return f"group-{group_id}"


def _edge(source: str, target: str, label: str, kind: str) -> Dict[str, Any]:
    return {"data": {"id": f"{source}->{target}:{label}", "source": source,
                     "target": target, "label": label, "kind": kind}}


def build_flow_graph(
    assessment: Assessment,
    report: Optional[ReachabilityReport] = None,
) -> Dict[str, List[Dict[str, Any]]]:
    """Export the assessment's transition graph as Cytoscape-style elements.

    Nodes: one per group, one per placed step (flagged ``unreachable`` and
    ``conditional``), and a virtual ``end`` node when anything leads there.
    Edges: group membership, each traversal rule ("Condition N"), the
    fallback ("Fallback"), and the natural-order successor ("Next") unless
    a fallback replaces it.
    """
    if report is None:
        report = ReachabilityAnalyzer().analyze(assessment)
    resolver = TraversalResolver()
    unreachable = set(report.unreachable)

    nodes: List[Dict[str, Any]] = []
    edges: List[Dict[str, Any]] = []
    needs_end = False

    def add_destination(source: str, dest: Destination, label: str, kind: str) -> None:
        nonlocal needs_end
        if isinstance(dest, StepDestination):
            edges.append(_edge(source, dest.id, label, kind))
        elif isinstance(dest, EndDestination):
            needs_end = True
            edges.append(_edge(source, END_NODE_ID, label, kind))

    for group in assessment.groups:
        group_node = _group_node_id(group.id)
        nodes.append({"data": {
            "id": group_node,
            "label": group.title or group.id,
            "type": "group",
            "step_count": len(group.steps),
        }})

        for ref in group.steps:
            step = assessment.get_step(ref.id)
            if step is None:
                continue
            nodes.append({"data": {
                "id": step.id,
                "label": step.title or step.id,
                "type": "step",
                "group": group.id,
                "field_count": len(step.fields),
                "unreachable": step.id in unreachable,
                "conditional": step.has_conditional_flow,
            }})
            edges.append(_edge(group_node, step.id, "", "membership"))

            for i, rule in enumerate(step.traversal):
                add_destination(step.id, rule.go, f"Condition {i + 1}", "rule")
            if step.fallback_next is not None:
                add_destination(step.id, step.fallback_next, "Fallback", "fallback")
            else:
                # Natural order only applies when no fallback overrides it
                natural = resolver.next_in_order(step.id, assessment)
                if natural is not None:
                    add_destination(step.id, natural, "Next", "natural")

    if needs_end:
        nodes.append({"data": {"id": END_NODE_ID, "label": "End Assessment", "type": "end"}})

    return {"nodes": nodes, "edges": edges}
