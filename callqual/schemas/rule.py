"""Rule schemas - typed criteria per rule type."""

import enum
from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    TypeAdapter,
    ValidationError,
    model_validator,
)

from callqual.models.rule import RuleType


class KeywordPosition(str, enum.Enum):
    """Which slice of the (speaker-filtered) lines a keyword rule inspects."""

    ANYWHERE = "anywhere"
    FIRST_3_LINES = "first_3_lines"
    LAST_3_LINES = "last_3_lines"


Keyword = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class KeywordCriteria(BaseModel):
    """At least one keyword must appear in the selected lines."""

    type: Literal["KEYWORD"] = "KEYWORD"
    keywords: list[Keyword] = Field(min_length=1)
    speaker: str | None = None
    position: KeywordPosition = KeywordPosition.ANYWHERE


class DurationCriteria(BaseModel):
    """Call length bounds in seconds."""

    type: Literal["DURATION"] = "DURATION"
    min_seconds: int | float | None = None
    max_seconds: int | float | None = None


class SpeakerTimeCriteria(BaseModel):
    """Share of the call a speaker talks, in percent."""

    type: Literal["SPEAKER_TIME"] = "SPEAKER_TIME"
    speaker: str
    min_percentage: int | float | None = None
    max_percentage: int | float | None = None


class CustomCriteria(BaseModel):
    """Placeholder - accepted and stored, never passes."""

    model_config = ConfigDict(extra="allow")

    type: Literal["CUSTOM"] = "CUSTOM"


Criteria = Annotated[
    Union[KeywordCriteria, DurationCriteria, SpeakerTimeCriteria, CustomCriteria],
    Field(discriminator="type"),
]

_criteria_adapter: TypeAdapter = TypeAdapter(Criteria)


def parse_criteria(rule_type: str, criteria: dict[str, Any] | None) -> Criteria:
    """Validate a raw criteria payload for the given type. Raises ValidationError."""
    payload = dict(criteria or {})
    payload["type"] = rule_type
    return _criteria_adapter.validate_python(payload)


class RuleDefinition(BaseModel):
    """A rule ready for evaluation."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    is_required: bool = False
    criteria: Criteria

    @property
    def type(self) -> str:
        return self.criteria.type


class UnparseableRule(BaseModel):
    """A stored rule whose type or criteria could not be interpreted."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    is_required: bool = False
    type: str
    reason: str


EvaluableRule = RuleDefinition | UnparseableRule

_KNOWN_TYPES = {t.value for t in RuleType}


def format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"] if p not in _KNOWN_TYPES)
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def parse_rule(
    rule_id: str,
    name: str,
    rule_type: str,
    criteria: dict[str, Any] | None,
    is_required: bool = False,
) -> EvaluableRule:
    """Build a typed rule from stored fields. Never raises."""
    if rule_type not in _KNOWN_TYPES:
        return UnparseableRule(
            id=rule_id,
            name=name,
            is_required=is_required,
            type=str(rule_type),
            reason=f"Unknown rule type: {rule_type}",
        )
    if criteria is not None and not isinstance(criteria, dict):
        return UnparseableRule(
            id=rule_id,
            name=name,
            is_required=is_required,
            type=rule_type,
            reason=f"Invalid criteria for {rule_type} rule: expected an object",
        )
    try:
        parsed = parse_criteria(rule_type, criteria)
    except ValidationError as e:
        return UnparseableRule(
            id=rule_id,
            name=name,
            is_required=is_required,
            type=rule_type,
            reason=f"Invalid criteria for {rule_type} rule: {format_validation_error(e)}",
        )
    return RuleDefinition(id=rule_id, name=name, is_required=is_required, criteria=parsed)


def rule_from_model(rule) -> EvaluableRule:
    """Snapshot an ORM Rule row into an evaluable rule."""
    return parse_rule(
        rule_id=str(rule.id),
        name=rule.name,
        rule_type=rule.type,
        criteria=rule.criteria,
        is_required=bool(rule.is_required),
    )


class CreateRuleRequest(BaseModel):
    """POST /v1/rules request."""

    name: str
    description: str | None = None
    type: RuleType
    criteria: dict[str, Any] = Field(default_factory=dict)
    is_required: bool = False
    is_active: bool = True

    @model_validator(mode="after")
    def check_criteria(self) -> "CreateRuleRequest":
        try:
            parse_criteria(self.type.value, self.criteria)
        except ValidationError as e:
            raise ValueError(
                f"Invalid criteria for {self.type.value} rule: {format_validation_error(e)}"
            ) from e
        return self


class UpdateRuleRequest(BaseModel):
    """PATCH /v1/rules/{id} request - criteria re-validated against the final type."""

    name: str | None = None
    description: str | None = None
    type: RuleType | None = None
    criteria: dict[str, Any] | None = None
    is_required: bool | None = None
    is_active: bool | None = None


class RuleOut(BaseModel):
    """Rule as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None = None
    type: str
    criteria: dict[str, Any]
    is_required: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime
