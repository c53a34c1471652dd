"""assessment_flow — conditional flow engine for multi-step assessments.

Public API:
    evaluate_condition      — evaluate one primitive condition against answers
    evaluate_visibility     — evaluate an any/all/not visibility expression
    get_visible_fields      — names of the fields currently visible
    validate_visible_fields — required-field check over visible fields only
    is_truthy               — the truthiness table used by truthy/falsy
    resolve_next            — next destination after a step (rules → fallback → order)
    resolve_previous        — natural-order predecessor of a step
    analyze                 — reachability report for an assessment

Classes behind the functions:
    VisibilityEvaluator, TraversalResolver, ReachabilityAnalyzer

Host-side helpers:
    check_integrity         — authoring-time reference/structure checks
    build_flow_graph        — nodes/edges export of the transition graph
    AssessmentStore         — loads YAML/JSON assessment documents
    parse_assessment / dump_assessment — plain document ↔ model
    AssessmentSession       — in-memory walk for one respondent
"""

from assessment_flow.evaluator import (
    VisibilityEvaluator,
    evaluate_condition,
    evaluate_visibility,
    get_visible_fields,
    is_truthy,
    validate_visible_fields,
)
from assessment_flow.graph import build_flow_graph
from assessment_flow.integrity import check_integrity
from assessment_flow.models import (
    Assessment,
    Destination,
    EndDestination,
    FormField,
    Group,
    IntegrityIssue,
    ReachabilityReport,
    Step,
    StepDestination,
    TraversalRule,
    ValidationResult,
)
from assessment_flow.reachability import ReachabilityAnalyzer, analyze
from assessment_flow.session import AssessmentSession, flatten_answers
from assessment_flow.store import AssessmentStore, dump_assessment, load_assessment, parse_assessment
from assessment_flow.traversal import TraversalResolver, resolve_next, resolve_previous

__all__ = [
    # Engine
    "VisibilityEvaluator",
    "TraversalResolver",
    "ReachabilityAnalyzer",
    "evaluate_condition",
    "evaluate_visibility",
    "get_visible_fields",
    "validate_visible_fields",
    "is_truthy",
    "resolve_next",
    "resolve_previous",
    "analyze",
    # Host-side helpers
    "check_integrity",
    "build_flow_graph",
    "AssessmentStore",
    "AssessmentSession",
    "flatten_answers",
    "parse_assessment",
    "dump_assessment",
    "load_assessment",
    # Models
    "Assessment",
    "Destination",
    "EndDestination",
    "FormField",
    "Group",
    "IntegrityIssue",
    "ReachabilityReport",
    "Step",
    "StepDestination",
    "TraversalRule",
    "ValidationResult",
]
