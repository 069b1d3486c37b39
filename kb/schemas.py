from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


KEBAB_PATTERN = r"^[a-z0-9-]+$"
SEMVER_PATTERN = r"^[0-9]+\.[0-9]+\.[0-9]+$"

Outcome = Literal["book", "wait", "switch", "discard"]
LaunchPriority = Literal["P0", "P1", "P2"]
TopicBucket = Literal[
    "personal_fit",
    "destination_choice",
    "timing",
    "experience_type",
    "accommodation",
    "logistics",
    "risk_ethics",
    "value_cost",
]
DecisionComplexity = Literal["binary", "conditional", "multi-factor"]
SeoIntent = Literal["high", "medium", "low"]
EvidenceType = Literal[
    "statistic",
    "expert_quote",
    "seasonal_pattern",
    "cost_benchmark",
    "risk_factor",
    "historical_data",
]
TemplateCategory = Literal[
    "headline", "summary", "assumption", "tradeoff", "change_condition", "refusal"
]
ReviewStatus = Literal["draft", "reviewed", "approved"]
Severity = Literal["high", "medium", "low"]
SuggestionField = Literal[
    "required_inputs", "optional_inputs", "variant_defaults", "topic_note"
]

KebabId = Annotated[str, Field(pattern=KEBAB_PATTERN)]
SemVer = Annotated[str, Field(pattern=SEMVER_PATTERN)]
TradeoffText = Annotated[str, Field(min_length=5, max_length=150)]
ConditionText = Annotated[str, Field(min_length=10, max_length=150)]
NonEmpty = Annotated[str, Field(min_length=1)]


class Record(BaseModel):
    # unknown keys in authored content are rejected rather than dropped
    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------------
# Topics
# ---------------------------------------------------------------------------


class TopicInput(Record):
    key: NonEmpty
    label: NonEmpty
    example: NonEmpty


class TimeContext(Record):
    month: Optional[str] = None
    year: Optional[int] = None
    season: Optional[str] = None


class TopicRecord(Record):
    topic_id: KebabId
    slug: KebabId
    version: SemVer

    title: Annotated[str, Field(min_length=10, max_length=100)]
    question: Annotated[str, Field(min_length=10, max_length=200)]
    context_line: Annotated[str, Field(min_length=20, max_length=300)]

    bucket: TopicBucket
    decision_complexity: DecisionComplexity
    destinations: List[str] = Field(min_length=1)

    eligible_outcomes: List[Outcome] = Field(min_length=1)
    default_outcome: Outcome

    launch_priority: LaunchPriority
    seo_intent: SeoIntent
    assurance_eligible: bool
    compare_enabled: bool

    # authoring inputs read by the improvement rules
    required_inputs: List[TopicInput] = []
    optional_inputs: List[TopicInput] = []
    time_context: Optional[TimeContext] = None
    variant_defaults: Dict[str, Any] = {}
    published: bool = True

    created_at: datetime
    updated_at: datetime

    @field_validator("eligible_outcomes")
    @classmethod
    def _no_duplicate_outcomes(cls, v: List[str]) -> List[str]:
        if len(set(v)) != len(v):
            raise ValueError("eligible_outcomes contains duplicates")
        return v

    @model_validator(mode="after")
    def _default_is_eligible(self) -> "TopicRecord":
        if self.default_outcome not in self.eligible_outcomes:
            raise ValueError(
                f"default_outcome '{self.default_outcome}' is not one of eligible_outcomes"
            )
        return self

    def input_keys(self) -> List[str]:
        return [i.key for i in self.required_inputs] + [
            i.key for i in self.optional_inputs
        ]


# ---------------------------------------------------------------------------
# Baselines
# ---------------------------------------------------------------------------


class Assumption(Record):
    id: KebabId
    text: Annotated[str, Field(min_length=10, max_length=200)]
    confidence: float = Field(ge=0, le=1)


class Tradeoffs(Record):
    gains: List[TradeoffText]
    losses: List[TradeoffText]

    @field_validator("gains")
    @classmethod
    def _has_gains(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("no gains")
        return v

    @field_validator("losses")
    @classmethod
    def _has_losses(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("no losses")
        return v


class BaselineDecisionRecord(Record):
    topic_id: KebabId
    version: SemVer

    outcome: Outcome
    headline: Annotated[str, Field(min_length=20, max_length=120)]
    summary: Annotated[str, Field(min_length=50, max_length=500)]
    assumptions: List[Assumption]
    tradeoffs: Tradeoffs
    change_conditions: List[ConditionText]
    confidence: float = Field(ge=0, le=1)

    created_at: datetime
    updated_at: datetime
    author: Optional[str] = None
    review_status: ReviewStatus = "draft"

    @field_validator("assumptions")
    @classmethod
    def _assumption_count(cls, v: List[Assumption]) -> List[Assumption]:
        if len(v) < 2:
            raise ValueError(f"fewer than 2 assumptions ({len(v)})")
        if len(v) > 5:
            raise ValueError(f"more than 5 assumptions ({len(v)})")
        return v

    @field_validator("change_conditions")
    @classmethod
    def _condition_count(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("no change conditions")
        if len(v) > 5:
            raise ValueError(f"more than 5 change conditions ({len(v)})")
        return v


# ---------------------------------------------------------------------------
# Evidence and templates
# ---------------------------------------------------------------------------


class EvidenceCard(Record):
    evidence_id: KebabId
    version: SemVer

    type: EvidenceType
    title: Annotated[str, Field(min_length=10, max_length=100)]
    content: Annotated[str, Field(min_length=20, max_length=500)]
    source: Optional[Annotated[str, Field(min_length=5, max_length=200)]] = None
    source_url: Optional[Annotated[str, Field(pattern=r"^https?://\S+$")]] = None
    source_date: Optional[datetime] = None

    tags: List[KebabId] = Field(min_length=1)
    topic_ids: List[KebabId] = []
    destinations: List[str] = []

    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    requires_annual_review: bool = False

    created_at: datetime
    updated_at: datetime


class TemplateExample(Record):
    input: str
    output: str


class TemplateRecord(Record):
    template_id: KebabId
    version: SemVer

    name: Annotated[str, Field(min_length=5, max_length=100)]
    description: Annotated[str, Field(min_length=10, max_length=300)]
    template: Annotated[str, Field(min_length=20)]
    category: TemplateCategory
    examples: Optional[List[TemplateExample]] = None

    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Governance
# ---------------------------------------------------------------------------


class ForbiddenPattern(Record):
    pattern: str
    description: str


class BannedPhrases(Record):
    version: SemVer
    updated_at: datetime
    banned_words: List[str]
    forbidden_patterns: List[ForbiddenPattern]
    # advisory only
    preferred_vocabulary: List[str]


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class ValidationResult(BaseModel):
    valid: bool
    violations: List[str] = []

    @classmethod
    def from_violations(cls, violations: List[str]) -> "ValidationResult":
        return cls(valid=not violations, violations=list(violations))


class Suggestion(BaseModel):
    rule_id: str
    severity: Severity
    message: str
    field: SuggestionField
    suggested_additions: Optional[List[TopicInput]] = None
    suggested_changes: Optional[Dict[str, Any]] = None


class TopicImprovementAnalysis(BaseModel):
    topic_id: str
    refusal_rate: Optional[float] = None
    suggestions: List[Suggestion] = []


class TopicPatch(BaseModel):
    topic_id: str
    suggested_required_inputs_additions: List[TopicInput] = []
    suggested_optional_inputs_additions: List[TopicInput] = []
    suggested_variant_default_changes: Dict[str, Any] = {}
    suggested_topic_notes: Dict[str, Any] = {}

    def is_empty(self) -> bool:
        return not (
            self.suggested_required_inputs_additions
            or self.suggested_optional_inputs_additions
            or self.suggested_variant_default_changes
            or self.suggested_topic_notes
        )


class TopicHealth(BaseModel):
    topic_id: str
    refusal_rate: Optional[float] = Field(default=None, ge=0, le=1)
    refusal_reasons: List[str] = []
