from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Optional
from faculty_appraisal.models.appraisal import AppraisalStatus


class SignatureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    appraisal_id: int
    signer_id: int
    signer_role: str
    note: Optional[str] = None
    signed_at: datetime


class AppraisalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    faculty_id: int
    cycle_id: int
    status: AppraisalStatus
    research_score: Optional[float] = None
    university_service_score: Optional[float] = None
    community_service_score: Optional[float] = None
    teaching_quality_score: Optional[float] = None
    total_score: Optional[float] = None
    updated_at: Optional[datetime] = None
    signatures: List[SignatureResponse] = []


class ApproveRequest(BaseModel):
    appraisal_id: int


class AppealCreate(BaseModel):
    message: str = Field(default="", max_length=4000)


class AppealResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    appraisal_id: int
    by_user_id: int
    message: str
    created_at: datetime
    resolved_at: Optional[datetime] = None
    resolution_note: Optional[str] = None
    is_resolved: bool = False


class AppealResolve(BaseModel):
    resolution_note: str = Field(default="", max_length=4000)


class WorkflowResult(BaseModel):
    """Outcome of a workflow transition."""
    success: bool = True
    appraisal: AppraisalResponse
    appeal: Optional[AppealResponse] = None


class ReviewItem(BaseModel):
    appraisal: AppraisalResponse
    faculty_name: Optional[str] = None
    faculty_email: str
    department_id: Optional[int] = None


class ReviewList(BaseModel):
    cycle_id: int
    items: List[ReviewItem]
