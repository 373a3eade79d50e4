from pydantic import BaseModel, ConfigDict, StrictFloat, StrictInt, StrictStr, field_validator
from typing import List, Optional, Union, Any


class ClinicalRequest(BaseModel):
    # Fields stay loosely typed and are read by truthiness, like the JSON the
    # clients send; bad sampling values fall back to defaults downstream.
    caseNotes: Any = None
    symptoms: Any = None
    age: Any = None
    sex: Any = None
    allergies: Any = None
    medications: Any = None
    duration: Any = None
    temperature: Any = None
    topP: Any = None
    topK: Any = None
    stopSequences: Any = None
    maxContextChars: Any = 8000
    useRag: Any = True


class EvidenceItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    snippet: str
    url: str = ""


class DiagnosisCandidate(BaseModel):
    """Only name and probability are checked; anything else the model adds passes through."""
    model_config = ConfigDict(extra="allow")

    name: StrictStr
    probability: Union[StrictInt, StrictFloat]
    reasoning: Any = None
    recommended_tests: Any = None
    citations: Any = None

    @field_validator("probability")
    @classmethod
    def _within_unit_interval(cls, v):
        if not 0 <= v <= 1:
            raise ValueError("probability must be within [0, 1]")
        return v


class DiagnosisOutput(BaseModel):
    model_config = ConfigDict(extra="allow")

    diagnoses: List[DiagnosisCandidate]
    recommendations: Optional[List[Any]] = None
