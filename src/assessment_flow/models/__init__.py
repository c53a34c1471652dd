"""Public model re-exports for assessment_flow.

Consumers should import from ``assessment_flow.models`` rather than
reaching into sub-modules directly.
"""

# --- Conditions ---
from assessment_flow.models.condition import (
    Condition,
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
    parse_condition,
)

# --- Visibility expressions ---
from assessment_flow.models.expression import (
    AllOf,
    AnyOf,
    EmptyExpression,
    Expression,
    Not,
    Operand,
    parse_expression,
)

# --- Assessment definition ---
from assessment_flow.models.assessment import (
    Assessment,
    AssessmentMeta,
    Destination,
    EndDestination,
    FieldOption,
    FormField,
    Group,
    GroupDestination,
    Step,
    StepDestination,
    StepRef,
    TraversalRule,
)

# --- Results ---
from assessment_flow.models.results import (
    IntegrityIssue,
    ReachabilityReport,
    ValidationResult,
)

__all__ = [
    # Conditions
    "Condition",
    "EqCondition",
    "FalsyCondition",
    "GtCondition",
    "GteCondition",
    "InCondition",
    "LtCondition",
    "LteCondition",
    "NeCondition",
    "TruthyCondition",
    "UnknownCondition",
    "parse_condition",
    # Expressions
    "AllOf",
    "AnyOf",
    "EmptyExpression",
    "Expression",
    "Not",
    "Operand",
    "parse_expression",
    # Assessment
    "Assessment",
    "AssessmentMeta",
    "Destination",
    "EndDestination",
    "FieldOption",
    "FormField",
    "Group",
    "GroupDestination",
    "Step",
    "StepDestination",
    "StepRef",
    "TraversalRule",
    # Results
    "IntegrityIssue",
    "ReachabilityReport",
    "ValidationResult",
]
