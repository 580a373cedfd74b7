# hairscan/models.py
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AnalyzeRequest(BaseModel):
    # both optional so a missing field is reported as "Missing image data"
    base64Image: Optional[str] = None
    mimeType:    Optional[str] = None


class DoctorQuery(BaseModel):
    location:  Optional[str] = None
    specialty: Optional[str] = None


class HairAssessment(BaseModel):
    """The five fields the analysis provider is asked to fill in."""

    grade:                    str
    percentageLoss:           float = Field(allow_inf_nan=False)
    analysisSummary:          str
    tips:                     List[str] = Field(min_length=1)
    doctorConsultationAdvice: str

    @field_validator("grade", mode="before")
    @classmethod
    def grade_as_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("percentageLoss", mode="before")
    @classmethod
    def strip_percent_sign(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().rstrip("%").strip()
        return value

    @field_validator("percentageLoss")
    @classmethod
    def clamp_percentage(cls, value: float) -> float:
        return min(max(value, 0.0), 100.0)


class AnalysisResult(HairAssessment):
    additionalHairCareTips: List[str] = Field(default_factory=list, max_length=3)


class Practitioner(BaseModel):
    model_config = ConfigDict(frozen=True)

    name:          str
    qualification: str = "N/A"
    speciality:    str = ""
    location:      str = ""
    phone:         str = ""
    address:       str = ""
    website:       str = ""
    registration:  str = "N/A"
    source:        Optional[str] = None


class DoctorsResponse(BaseModel):
    doctors: List[Practitioner]


class ErrorResponse(BaseModel):
    error: str


class HealthStatus(BaseModel):
    status:           str
    doctors_loaded:   int
    dataset_fallback: bool
    model:            str
