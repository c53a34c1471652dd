"""Assessment flow constants shared across the engine.

These values are referenced by the condition/expression models, the
visibility evaluator and the flow graph export.  They mirror the conventions
encoded in the assessment documents under ``assessments/``.

The required-field message can be overridden via an environment variable so
that deployments can adjust wording without code changes.
"""

import os


# Field types whose answer is a boolean (or, with options, a collection).
# A required checkbox must be explicitly ticked, not merely present.
BOOLEAN_FIELD_TYPES: set[str] = {"checkbox"}

# Condition kinds in the order they are checked when parsing the compact
# ``{"eq": ["field", value]}`` shape.  First matching key wins.
CONDITION_OPS: tuple[str, ...] = (
    "eq", "ne", "gt", "gte", "lt", "lte", "in", "truthy", "falsy",
)

# Combinator keys, in evaluation precedence order.
COMBINATOR_KEYS: tuple[str, ...] = ("any", "all", "not")

# Template for validation errors on required visible fields.
# Overridable via ASSESSMENT_REQUIRED_MESSAGE env var.
DEFAULT_REQUIRED_MESSAGE = os.getenv("ASSESSMENT_REQUIRED_MESSAGE", "{label} is required")

# Node id used for the terminal destination in exported flow graphs.
END_NODE_ID = "end"
