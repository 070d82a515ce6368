# policy_core/models.py
"""
Data models for the policy AI pipeline and the policy store.

Design Decisions:
- Pydantic BaseModel for runtime validation and JSON serialization
- Every PolicyAnalysisResult field has a default, so a degraded result can always
  be stored in place of a failed LLM call
- Provider replies use camelCase keys; fields carry aliases and accept both forms
- None values from the provider are dropped before validation so defaults apply

Why These Models:
- PolicyAnalysisRequest: Rejects blank input before any component runs
- PolicyAnalysisResult: Single schema shared by the LLM path and the rule-based path
- AnalysisOutcome: Result plus diagnostics (timing, tokens, success flag)
- UsageRecord: One append-only row per orchestration call
- PolicyDraft / PolicyRecord / PolicyQuery / PolicyPage: Policy store contracts
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from policy_core.exceptions import ValidationError

MAX_KEY_POINTS = 3


class AnalysisMode(str, Enum):
    """Which slice of the pipeline to run."""
    FULL = "full"
    QUICK = "quick"
    SUMMARY = "summary"

    @classmethod
    def parse(cls, value: Any) -> "AnalysisMode":
        """Resolve a mode string; unknown values fall back to FULL."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.FULL


class RiskLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def _drop_none(data: Any) -> Any:
    if isinstance(data, dict):
        return {k: v for k, v in data.items() if v is not None}
    return data


def _clean_strings(values: List[str]) -> List[str]:
    """Strip, drop empties and deduplicate while keeping first-seen order."""
    seen = set()
    cleaned = []
    for value in values:
        text = value.strip()
        if text and text not in seen:
            seen.add(text)
            cleaned.append(text)
    return cleaned


class Compliance(BaseModel):
    """Compliance requirements attached to a policy."""
    model_config = ConfigDict(populate_by_name=True)

    required: bool = Field(default=False, alias="isRequired")
    checkpoints: List[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def drop_none(cls, data: Any) -> Any:
        return _drop_none(data)


class PolicyAnalysisResult(BaseModel):
    """
    Structured view of a policy document.

    Produced by the LLM structuring call or by the rule-based analyzer.
    model_fields_set tells which fields the producer actually supplied,
    which the orchestrator uses when merging partial LLM output.
    """
    model_config = ConfigDict(populate_by_name=True)

    category: str = Field(default="Uncategorized", description="Policy category")
    policy_type: str = Field(default="General", alias="policyType")
    key_points: List[str] = Field(default_factory=list, alias="keyPoints")
    tags: List[str] = Field(default_factory=list, description="Deduplicated, display order")
    business_area: str = Field(default="All", alias="businessArea")
    compliance: Compliance = Field(default_factory=Compliance)
    summary: str = Field(default="")
    risk_level: RiskLevel = Field(default=RiskLevel.MEDIUM, alias="riskLevel")
    target_audience: List[str] = Field(
        default_factory=lambda: ["All employees"], alias="targetAudience"
    )
    effective_scope: str = Field(default="Company-wide", alias="effectiveScope")

    @model_validator(mode="before")
    @classmethod
    def drop_none(cls, data: Any) -> Any:
        return _drop_none(data)

    @field_validator("key_points")
    @classmethod
    def cap_key_points(cls, v: List[str]) -> List[str]:
        return _clean_strings(v)[:MAX_KEY_POINTS]

    @field_validator("tags", "target_audience")
    @classmethod
    def dedupe(cls, v: List[str]) -> List[str]:
        return _clean_strings(v)

    @field_validator("target_audience", mode="before")
    @classmethod
    def wrap_single_audience(cls, v: Any) -> Any:
        # Models sometimes answer "All employees" instead of ["All employees"]
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("risk_level", mode="before")
    @classmethod
    def normalize_risk(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @classmethod
    def from_llm(cls, data: Dict[str, Any]) -> "PolicyAnalysisResult":
        """Validate a decoded provider reply; raises pydantic's ValidationError on mismatch."""
        return cls.model_validate(data)

    def to_dict(self) -> Dict[str, Any]:
        """camelCase JSON-ready dict, the shape stored with a policy."""
        return self.model_dump(by_alias=True, mode="json")


class PolicyAnalysisRequest(BaseModel):
    """Immutable input of one orchestration call."""
    model_config = ConfigDict(frozen=True)

    title: str
    content: str
    mode: AnalysisMode = AnalysisMode.FULL

    @field_validator("title", "content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator("mode", mode="before")
    @classmethod
    def parse_mode(cls, v: Any) -> AnalysisMode:
        return AnalysisMode.parse(v)

    @classmethod
    def create(cls, title: Any, content: Any, mode: Any = AnalysisMode.FULL) -> "PolicyAnalysisRequest":
        """Build a request, raising ValidationError for blank or non-string input."""
        try:
            return cls(title=title, content=content, mode=mode)
        except PydanticValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors())
            raise ValidationError(f"Invalid analysis request ({fields}): title and content are required") from e


class AnalysisOutcome(BaseModel):
    """Merged result of one orchestration call plus diagnostics."""
    mode: AnalysisMode
    result: PolicyAnalysisResult
    processing_time_ms: int = Field(default=0, ge=0)
    tokens_used: int = Field(default=0, ge=0)
    success: bool = Field(default=False, description="True if any LLM sub-call contributed")
    errors: List[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def payload(self) -> Dict[str, Any]:
        """Result restricted to what the mode asked for."""
        if self.mode == AnalysisMode.QUICK:
            return {"category": self.result.category, "tags": list(self.result.tags)}
        if self.mode == AnalysisMode.SUMMARY:
            return {"summary": self.result.summary}
        return self.result.to_dict()


class UsageRecord(BaseModel):
    """One row in the AI usage log. Never mutated after creation."""
    model_config = ConfigDict(frozen=True)

    analysis_type: str
    content_length: int = Field(default=0, ge=0)
    processing_time_ms: int = Field(default=0, ge=0)
    success: bool
    error_message: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# =============================================================================
# POLICY STORE MODELS
# =============================================================================

class PolicyDraft(BaseModel):
    """Fields a user submits when registering a policy."""
    title: str
    content: str
    category: str
    department: str
    created_by: str
    priority: str = "medium"
    status: str = "draft"
    tags: List[str] = Field(default_factory=list)
    target_audience: List[str] = Field(default_factory=list)
    approvers: List[str] = Field(default_factory=list)
    effective_date: Optional[str] = None
    expiry_date: Optional[str] = None

    def missing_fields(self) -> List[str]:
        required = ("title", "content", "category", "department", "created_by")
        return [name for name in required if not getattr(self, name).strip()]


class PolicyRecord(PolicyDraft):
    """Stored policy row."""
    id: int
    views: int = 0
    is_deleted: bool = False
    ai_structured: Dict[str, Any] = Field(default_factory=dict)
    created_at: str
    updated_at: str


class PolicyQuery(BaseModel):
    """Filters and pagination for policy searches."""
    keyword: Optional[str] = None
    category: Optional[str] = None
    department: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_from: Optional[str] = None
    created_to: Optional[str] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)


class PolicyPage(BaseModel):
    """One page of search results."""
    policies: List[PolicyRecord] = Field(default_factory=list)
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit
