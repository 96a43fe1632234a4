from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional, Dict, Any
from enum import Enum


class RiskLevel(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"

    @classmethod
    def from_score(cls, score: int) -> "RiskLevel":
        if score < 30:
            return cls.LOW
        if score < 60:
            return cls.MODERATE
        return cls.HIGH


class DateType(str, Enum):
    ABSOLUTE = "absolute"
    RELATIVE = "relative"


class CalendarType(str, Enum):
    GOOGLE = "google"
    OUTLOOK = "outlook"


class CamelModel(BaseModel):
    """Accepts both snake_case and camelCase input, serializes with the camelCase aliases"""
    model_config = ConfigDict(populate_by_name=True)


class ContractUrlRequest(BaseModel):
    url: Optional[str] = None


class ContractUrlResponse(BaseModel):
    message: str
    url: str
    redirect: bool = True


class PendingUrlResponse(BaseModel):
    url: Optional[str] = None


class AuthUrlResponse(BaseModel):
    url: str


class TokenExchangeRequest(BaseModel):
    code: str


class TokenResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    access_token: str
    token_type: str = "Bearer"
    expires_in: Optional[int] = None
    scope: Optional[str] = None
    refresh_token: Optional[str] = None
    account_id: str


class FetchContractRequest(CamelModel):
    docusign_url: Optional[str] = Field(None, alias="docusignUrl")


class FetchContractResponse(CamelModel):
    content: str
    envelope_id: Optional[str] = Field(None, alias="envelopeId")
    account_id: Optional[str] = Field(None, alias="accountId")
    document_count: Optional[int] = Field(None, alias="documentCount")
    is_scanned: bool = Field(False, alias="isScanned")


class AnalyzeContractRequest(CamelModel):
    contract_content: Optional[str] = Field(None, alias="contractContent")


class ImportantDate(CamelModel):
    date: str  # raw matched text
    context: str
    type: DateType
    formatted_date: str = Field(alias="formattedDate")
    event_type: str = Field(alias="eventType")


class CategoryScores(BaseModel):
    financial: int = 0
    legal: int = 0
    compliance: int = 0
    operational: int = 0


class ContractAnalysis(CamelModel):
    summary: str
    risk_score: int = Field(alias="riskScore", ge=0, le=100)
    risk_level: Optional[RiskLevel] = Field(None, alias="riskLevel")
    risk_explanation: Optional[str] = Field(None, alias="riskExplanation")
    key_terms: List[str] = Field(default_factory=list, alias="keyTerms")
    potential_issues: List[str] = Field(default_factory=list, alias="potentialIssues")
    recommendations: List[str] = Field(default_factory=list)
    important_dates: List[ImportantDate] = Field(default_factory=list, alias="importantDates")
    category_scores: Optional[CategoryScores] = Field(None, alias="categoryScores")
    is_partial_analysis: bool = Field(False, alias="isPartialAnalysis")
    analysis_id: Optional[str] = Field(None, alias="analysisId")
    pass_count: int = Field(0, alias="passCount")
    error: Optional[str] = None

    @model_validator(mode="after")
    def _fill_risk_level(self):
        if self.risk_level is None:
            self.risk_level = RiskLevel.from_score(self.risk_score)
        return self


class ChatRequest(BaseModel):
    context: Optional[str] = None
    question: str
    analysis: Optional[ContractAnalysis] = None


class ChatResponse(BaseModel):
    response: str
    focus: str


class CalendarLinkRequest(CamelModel):
    date_info: ImportantDate = Field(alias="dateInfo")
    calendar_type: CalendarType = Field(CalendarType.GOOGLE, alias="calendarType")


class CalendarLinkResponse(CamelModel):
    url: str
    title: str
    start_date: str = Field(alias="startDate")
    end_date: str = Field(alias="endDate")


class HealthResponse(BaseModel):
    status: str
    cache: Dict[str, Any] = {}
