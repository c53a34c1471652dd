"""Assessment definition models — groups, steps, fields and destinations.

These models mirror the assessment documents under ``assessments/``:

  - Assessment: root container; ordered groups plus a step table keyed by id
  - Group: ordered list of step references, used for natural-order sequencing
  - Step: one page of fields, with optional traversal rules and a fallback
  - FormField: one data-collecting input, optionally hidden by an expression
  - TraversalRule: ``when`` guard + ``go`` destination
  - Destination: ``step`` (carries an id), ``end``, or the reserved ``group``

Documents use camelCase keys (``fallbackNext``, ``helpText``, ``createdAt``).
Every model accepts both the alias and the attribute name, and dumps by alias.

Reference integrity (every group entry resolves, no step shared between
positions) is deliberately *not* enforced here so that broken documents still
load; ``assessment_flow.integrity`` reports those problems instead.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .expression import Expression


# --- Destinations ---

class StepDestination(BaseModel):
    """Continue at the step with the given id."""

    type: Literal["step"] = "step"
    id: str


class GroupDestination(BaseModel):
    """Reserved in the document schema; never produced by the resolver."""

    type: Literal["group"] = "group"
    id: Optional[str] = None


class EndDestination(BaseModel):
    """Terminal destination — the assessment is finished."""

    type: Literal["end"] = "end"


# Tagged on "type"; an unknown destination type is a validation error.
Destination = Annotated[
    Union[StepDestination, GroupDestination, EndDestination],
    Field(discriminator="type"),
]


# --- Fields ---

# "bmi" is a derived height + weight composite the host renders; the engine
# treats its answer as a scalar.
FieldType = Literal["text", "textarea", "number", "select", "checkbox", "radio", "date", "bmi"]


class FieldOption(BaseModel):
    """A selectable option for select/radio/checkbox fields."""

    label: str
    value: Any


class FormField(BaseModel):
    """One input within a step.  ``name`` is the answer key."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    label: str = ""
    type: FieldType = "text"
    required: bool = False
    options: Optional[List[FieldOption]] = None
    help_text: Optional[str] = Field(default=None, alias="helpText")
    visibility: Optional[Expression] = None

    @model_validator(mode="after")
    def _default_label(self):
        # Fall back to the answer key so validation messages stay readable
        if not self.label:
            self.label = self.name
        return self


# --- Steps ---

class TraversalRule(BaseModel):
    """If ``when`` holds for the collected answers, continue at ``go``."""

    when: Expression
    go: Destination


class Step(BaseModel):
    """One page of the assessment.

    ``key`` names the bucket the host stores this step's answers under; it
    defaults to the step id.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    key: str = ""
    title: str = ""
    description: Optional[str] = None
    fields: List[FormField] = []
    traversal: List[TraversalRule] = []
    fallback_next: Optional[Destination] = Field(default=None, alias="fallbackNext")

    @model_validator(mode="after")
    def _default_key(self):
        if not self.key:
            self.key = self.id
        return self

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    @property
    def has_conditional_flow(self) -> bool:
        """True if the step overrides natural order (rules or a fallback)."""
        return bool(self.traversal) or self.fallback_next is not None


# --- Groups ---

class StepRef(BaseModel):
    id: str


class Group(BaseModel):
    """Ordered container of step references."""

    id: str
    title: str = ""
    description: Optional[str] = None
    steps: List[StepRef] = []

    @property
    def step_ids(self) -> List[str]:
        return [ref.id for ref in self.steps]


class AssessmentMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    created_at: Optional[str] = Field(default=None, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")
    created_by: Optional[str] = Field(default=None, alias="createdBy")


# --- Root ---

class Assessment(BaseModel):
    """Root container: ordered groups plus the step table.

    Steps are keyed by a stable id, independent of their display order.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str = ""
    version: int = 1
    status: Literal["draft", "published"] = "draft"
    groups: List[Group] = []
    steps: Dict[str, Step] = {}
    meta: Optional[AssessmentMeta] = None

    def get_step(self, step_id: str) -> Optional[Step]:
        """Return the step with this id, or None if the table has no entry."""
        return self.steps.get(step_id)

    def locate(self, step_id: str) -> Optional[tuple[int, int]]:
        """Return ``(group_index, position)`` of the first reference to ``step_id``.

        Returns None if no group references the step.
        """
        for gi, group in enumerate(self.groups):
            for si, ref in enumerate(group.steps):
                if ref.id == step_id:
                    return gi, si
        return None

    def ordered_step_ids(self) -> List[str]:
        """All referenced step ids in natural (group by group) order."""
        return [ref.id for group in self.groups for ref in group.steps]

    def first_step_id(self) -> Optional[str]:
        """The entry point: the first step reference in natural order.

        Empty leading groups are skipped.  Returns None for an assessment
        without any step references.
        """
        for group in self.groups:
            if group.steps:
                return group.steps[0].id
        return None
