"""Domain Models - Pydantic schemas for QAP records and their parts"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .enums import QAPStatus, SpecCategory, MatchVerdict


# Records arrive in the camelCase shape the review UI stores, Python code uses snake_case
_CAMEL_CONFIG = dict(alias_generator=to_camel, populate_by_name=True)


def normalize_roles(value: Any) -> List[str]:
    """
    Normalize a reviewer assignment into an ordered, de-duplicated role list.

    Accepts None, a single role, a comma-separated string or any iterable of roles.
    """
    if value is None:
        return []
    if isinstance(value, str):
        candidates = value.split(",")
    else:
        candidates = list(value)

    roles: List[str] = []
    for candidate in candidates:
        role = str(candidate or "").strip().lower()
        if role and role not in roles:
            roles.append(role)
    return roles


# ============================================================================
# User & Session
# ============================================================================

class User(BaseModel):
    """Authenticated user acting on QAP records"""
    model_config = ConfigDict(extra="ignore", **_CAMEL_CONFIG)

    id: Optional[str] = None
    username: str = Field(..., description="Login name, matched against submitted_by")
    role: str = Field(..., description="One of UserRole; unknown roles are denied")
    plant: Optional[str] = Field(None, description="Comma separated plant codes, e.g. 'p4,p5'")

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value: Any) -> str:
        return str(value or "").strip().lower()

    @property
    def plants(self) -> List[str]:
        """Trimmed, lower-cased plant codes"""
        return [p.strip().lower() for p in (self.plant or "").split(",") if p.strip()]


# ============================================================================
# Specifications
# ============================================================================

class SpecRow(BaseModel):
    """One specification row compared against the customer's requirement"""
    model_config = ConfigDict(extra="ignore", **_CAMEL_CONFIG)

    sno: int
    criteria: Optional[str] = None
    sub_criteria: Optional[str] = None
    component_operation: Optional[str] = None
    characteristics: Optional[str] = None
    class_: Optional[str] = Field(None, alias="class")
    type_of_check: Optional[str] = None
    sampling: Optional[str] = None
    specification: Optional[str] = None
    defect: Optional[str] = None
    defect_class: Optional[str] = None
    description: Optional[str] = None
    criteria_limits: Optional[str] = None
    match: Optional[MatchVerdict] = None
    customer_specification: Optional[str] = None
    selected_for_review: bool = False
    review_by: List[str] = Field(default_factory=list, description="Roles asked to review this row")

    @field_validator("review_by", mode="before")
    @classmethod
    def _normalize_review_by(cls, value: Any) -> List[str]:
        return normalize_roles(value)

    @field_validator("match", mode="before")
    @classmethod
    def _normalize_match(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        return str(value).strip().lower()

    @property
    def is_mismatch(self) -> bool:
        return self.match == MatchVerdict.NO


class QAPSpecs(BaseModel):
    """MQP and Visual/EL specification sections"""
    model_config = ConfigDict(extra="ignore", **_CAMEL_CONFIG)

    mqp: List[SpecRow] = Field(default_factory=list)
    visual: List[SpecRow] = Field(default_factory=list)

    def rows(self, category: SpecCategory) -> List[SpecRow]:
        return self.mqp if SpecCategory(category) == SpecCategory.MQP else self.visual

    def all_rows(self) -> List[SpecRow]:
        return [*self.mqp, *self.visual]


class EditedSnos(BaseModel):
    """Serial numbers changed by the last requestor edit, per section"""
    mqp: List[int] = Field(default_factory=list)
    visual: List[int] = Field(default_factory=list)


class SpecChange(BaseModel):
    """A single field-level change between two spec revisions"""
    category: SpecCategory
    sno: int
    field: str
    before: Any = None
    after: Any = None


# ============================================================================
# Reviews & Timeline
# ============================================================================

class LevelResponse(BaseModel):
    """A role's response at a review level"""
    model_config = ConfigDict(extra="ignore", **_CAMEL_CONFIG)

    responded_by: str
    acknowledged: bool = True
    comments: Dict[int, str] = Field(default_factory=dict, description="Item index -> comment")
    responded_at: datetime


class TimelineEntry(BaseModel):
    """Audit trail entry (append-only)"""
    model_config = ConfigDict(extra="ignore", **_CAMEL_CONFIG)

    level: int
    action: str
    user: str = "system"
    timestamp: datetime
    comments: Optional[str] = None


# ============================================================================
# QAP Record
# ============================================================================

class QAPRecord(BaseModel):
    """Quality Assurance Plan record owned by the caller and passed through the engine"""
    model_config = ConfigDict(extra="ignore", **_CAMEL_CONFIG)

    id: str
    customer_name: str = ""
    project_code: Optional[str] = None
    project_name: str = ""
    order_quantity: int = 0
    product_type: str = ""
    plant: str = ""
    status: str = Field(default=QAPStatus.DRAFT.value)
    current_level: int = Field(default=1)
    submitted_by: Optional[str] = None
    submitted_at: Optional[datetime] = None
    approver: Optional[str] = None
    approved_at: Optional[datetime] = None
    feedback: Optional[str] = None
    final_comments: Optional[str] = None
    final_comments_by: Optional[str] = None
    final_comments_at: Optional[datetime] = None
    sales_request_id: Optional[str] = None
    specs: QAPSpecs = Field(default_factory=QAPSpecs)
    level_responses: Dict[int, Dict[str, LevelResponse]] = Field(default_factory=dict)
    timeline: List[TimelineEntry] = Field(default_factory=list)
    level_start_times: Dict[int, datetime] = Field(default_factory=dict)
    level_end_times: Dict[int, datetime] = Field(default_factory=dict)
    edited_snos: EditedSnos = Field(default_factory=EditedSnos)
    created_at: Optional[datetime] = None
    last_modified_at: Optional[datetime] = None
    version: int = Field(default=1, description="Optimistic concurrency version")

    @model_validator(mode="before")
    @classmethod
    def _split_legacy_rows(cls, data: Any) -> Any:
        """Older records keep every row in a flat 'qaps' list"""
        if not isinstance(data, dict) or "qaps" not in data:
            return data
        if data.get("specs"):
            return data
        data = dict(data)
        mqp, visual = [], []
        for row in data.pop("qaps") or []:
            criteria = str((row or {}).get("criteria") or "").strip().upper()
            (mqp if criteria == "MQP" else visual).append(row)
        data["specs"] = {"mqp": mqp, "visual": visual}
        return data

    @field_validator("status", "plant", mode="before")
    @classmethod
    def _normalize_code(cls, value: Any) -> str:
        if isinstance(value, QAPStatus):
            return value.value
        return str(value or "").strip().lower()

    def mismatched_rows(self) -> List[SpecRow]:
        return [row for row in self.specs.all_rows() if row.is_mismatch]


# ============================================================================
# Analytics
# ============================================================================

class TurnaroundFilters(BaseModel):
    """Filters for average turnaround calculations"""
    plant: Optional[str] = None
    level: Optional[int] = None


class TurnaroundResult(BaseModel):
    average: float = 0
    count: int = 0


class PlantTurnaround(BaseModel):
    plant: str
    average_time: float = 0
    count: int = 0


class LevelDuration(BaseModel):
    level: int
    average_time: float = 0
    count: int = 0


class RequestorPerformance(BaseModel):
    username: str
    count: int = 0
    total_time: float = 0

    @property
    def average_time(self) -> float:
        return self.total_time / self.count if self.count else 0


class AnalyticsSummary(BaseModel):
    """Dashboard figures over a filtered record set"""
    status_counts: Dict[str, int] = Field(default_factory=dict)
    plant_counts: Dict[str, int] = Field(default_factory=dict)
    turnaround_by_plant: List[PlantTurnaround] = Field(default_factory=list)
    level_durations: List[LevelDuration] = Field(default_factory=list)
    requestor_performance: List[RequestorPerformance] = Field(default_factory=list)
    expired_ids: List[str] = Field(default_factory=list)
    total: int = 0
    approved: int = 0
    pending: int = 0
