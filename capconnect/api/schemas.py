import datetime as dt
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, UUID4, field_validator, model_validator

Role = Literal["founder", "investor"]
ShareClassType = Literal["common", "preferred", "option_pool", "safe"]
StakeholderType = Literal["founder", "employee", "investor", "advisor"]
Instrument = Literal["SAFE", "Convertible Note", "Equity"]
InvestmentStatus = Literal["committed", "in_discussion", "withdrawn"]
DocumentType = Literal["pitch_deck", "term_sheet", "safe", "cap_table", "financials", "other"]
AccessLevel = Literal["public", "investors", "admins"]


class ORMModel(BaseModel):
    """Base for OUTBOUND schemas built straight from ORM rows."""
    model_config = ConfigDict(from_attributes=True)


# ──────────────────────────────────────────────────────────────────────────────
# Users
# ──────────────────────────────────────────────────────────────────────────────
class ProfileIn(BaseModel):
    role: Role
    full_name: str = Field(..., min_length=1)
    bio: Optional[str] = None
    linkedin_url: Optional[str] = None
    is_stealth: bool = False

    @field_validator("bio", "linkedin_url", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class UserOut(ORMModel):
    id: UUID4
    email: Optional[EmailStr] = None
    role: Role
    full_name: str
    bio: Optional[str] = None
    linkedin_url: Optional[str] = None
    is_stealth: bool
    is_verified: bool
    created_at: datetime


# ──────────────────────────────────────────────────────────────────────────────
# Companies & metrics
# ──────────────────────────────────────────────────────────────────────────────
class CompanyIn(BaseModel):
    name: str = Field(..., min_length=1)
    industry: str = Field(..., min_length=1)
    stage: str = "pre-seed"
    website: Optional[str] = None
    description: str = ""
    founded_date: Optional[date] = None
    country: str = "US"
    location: Optional[str] = None
    logo_url: Optional[str] = None
    target_raise: Optional[Decimal] = Field(None, ge=0)
    current_valuation: Optional[Decimal] = Field(None, ge=0)

    @field_validator("website", "founded_date", "location", "logo_url", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class CompanyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    industry: Optional[str] = Field(None, min_length=1)
    stage: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None
    founded_date: Optional[date] = None
    country: Optional[str] = None
    location: Optional[str] = None
    logo_url: Optional[str] = None
    target_raise: Optional[Decimal] = Field(None, ge=0)
    current_valuation: Optional[Decimal] = Field(None, ge=0)

    @field_validator("name", "industry", "stage", "description", "country")
    @classmethod
    def required_columns_not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not set to null")
        return value


class MetricsIn(BaseModel):
    month: date
    mrr: Decimal = Field(..., ge=0)
    arr: Optional[Decimal] = Field(None, ge=0)
    burn_rate: Decimal = Field(..., ge=0)
    runway_months: Optional[int] = Field(None, ge=0)
    cash_on_hand: Optional[Decimal] = Field(None, ge=0)
    cac: Optional[Decimal] = Field(None, ge=0)


class MetricsOut(ORMModel):
    id: UUID4
    month: date
    mrr: Decimal
    arr: Decimal
    burn_rate: Decimal
    runway_months: Optional[int] = None
    cac: Optional[Decimal] = None


class CompanyOut(ORMModel):
    id: UUID4
    user_id: UUID4
    name: str
    industry: str
    stage: str
    website: Optional[str] = None
    description: str
    founded_date: Optional[date] = None
    country: str
    location: Optional[str] = None
    logo_url: Optional[str] = None
    target_raise: Optional[Decimal] = None
    current_raised: Decimal
    current_valuation: Optional[Decimal] = None
    created_at: datetime


class CompanyCard(CompanyOut):
    founder_name: Optional[str] = None
    founder_verified: bool = False
    latest_metrics: Optional[MetricsOut] = None
    funding_progress: Decimal


class CompanyFiltersOut(BaseModel):
    industries: List[str]
    stages: List[str]


# ──────────────────────────────────────────────────────────────────────────────
# Cap table
# ──────────────────────────────────────────────────────────────────────────────
class ShareClassIn(BaseModel):
    name: str = Field(..., min_length=1)
    class_type: ShareClassType
    price_per_share: Optional[Decimal] = Field(None, ge=0)
    total_shares: int = Field(..., ge=0)
    outstanding_shares: int = Field(0, ge=0)

    @model_validator(mode="after")
    def outstanding_within_total(self):
        if self.outstanding_shares > self.total_shares:
            raise ValueError("outstanding_shares cannot exceed total_shares")
        return self


class ShareClassUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    price_per_share: Optional[Decimal] = Field(None, ge=0)
    total_shares: Optional[int] = Field(None, ge=0)
    outstanding_shares: Optional[int] = Field(None, ge=0)

    @field_validator("name", "total_shares", "outstanding_shares")
    @classmethod
    def required_columns_not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not set to null")
        return value


class ShareClassOut(ORMModel):
    id: UUID4
    name: str
    class_type: ShareClassType
    price_per_share: Optional[Decimal] = None
    total_shares: int
    outstanding_shares: int
    created_at: datetime


class ShareClassRow(ShareClassOut):
    percent_of_total: Decimal


class StakeholderIn(BaseModel):
    name: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    stakeholder_type: StakeholderType = "investor"

    @field_validator("email", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class StakeholderOut(ORMModel):
    id: UUID4
    name: str
    email: Optional[EmailStr] = None
    stakeholder_type: StakeholderType
    created_at: datetime


class SecurityIn(BaseModel):
    stakeholder_id: UUID4
    share_class_id: UUID4
    shares: int = Field(..., gt=0)
    issue_date: Optional[date] = None


class SecurityOut(BaseModel):
    id: UUID4
    share_class_id: UUID4
    share_class_name: str
    class_type: str
    shares: int
    issue_date: Optional[date] = None


class StakeholderHolding(StakeholderOut):
    securities: List[SecurityOut]
    total_shares: int
    ownership: Decimal


class ChartSlice(BaseModel):
    name: str
    value: int
    color: str
    type: str


class CapTableOut(BaseModel):
    company_id: UUID4
    company_name: str
    total_shares: int
    share_classes: List[ShareClassRow]
    stakeholders: List[StakeholderHolding]
    chart: List[ChartSlice]


# ──────────────────────────────────────────────────────────────────────────────
# Investments
# ──────────────────────────────────────────────────────────────────────────────
class InvestmentIn(BaseModel):
    company_id: UUID4
    amount: Decimal = Field(..., gt=0)
    instrument: Instrument = "SAFE"
    percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    status: InvestmentStatus = "committed"
    date: Optional[dt.date] = None


class InvestmentOut(ORMModel):
    id: UUID4
    investor_id: UUID4
    company_id: UUID4
    amount: Decimal
    percentage: Optional[Decimal] = None
    date: dt.date
    instrument: str
    status: str
    initial_valuation: Optional[Decimal] = None
    created_at: datetime


class CompanySummary(BaseModel):
    id: UUID4
    name: str
    logo: Optional[str] = None
    industry: str
    stage: str
    location: Optional[str] = None


class PortfolioPosition(BaseModel):
    id: UUID4
    company: CompanySummary
    amount: Decimal
    percentage: Optional[Decimal] = None
    date: dt.date
    instrument: str
    status: str
    valuation: Optional[Decimal] = None
    current_valuation: Optional[Decimal] = None
    current_equity_value: Decimal
    performance: int
    documents: int


class PortfolioSummary(BaseModel):
    total_invested: Decimal
    total_current_value: Decimal
    overall_performance: int


class PortfolioOut(BaseModel):
    investments: List[PortfolioPosition]
    portfolio_summary: PortfolioSummary


class FounderInvestmentRow(InvestmentOut):
    investor_name: Optional[str] = None


# ──────────────────────────────────────────────────────────────────────────────
# SPVs
# ──────────────────────────────────────────────────────────────────────────────
class SPVIn(BaseModel):
    name: str = Field(..., min_length=1)
    target_raise: Decimal = Field(..., gt=0)
    minimum_investment: Decimal = Field(Decimal("1000"), ge=0)
    description: Optional[str] = None
    expiry_date: Optional[date] = None


class SPVMemberOut(BaseModel):
    id: UUID4
    investor_id: UUID4
    full_name: str
    email: str
    amount_committed: Decimal
    status: str


class SPVOut(ORMModel):
    id: UUID4
    company_id: UUID4
    name: str
    description: Optional[str] = None
    status: str
    target_raise: Decimal
    committed_amount: Decimal
    minimum_investment: Decimal
    expiry_date: Optional[date] = None
    created_at: datetime


class FounderSPV(SPVOut):
    members: List[SPVMemberOut]
    commitment_progress: Decimal
    total_members: int
    committed_members: int


class FounderSPVStats(BaseModel):
    active_spvs: int
    total_committed: Decimal
    total_members: int


class FounderSPVList(BaseModel):
    spvs: List[FounderSPV]
    stats: FounderSPVStats


class AvailableSPV(BaseModel):
    id: UUID4
    name: str
    target_amount: Decimal
    raised_amount: Decimal
    status: str
    company_name: Optional[str] = None
    expiry_date: Optional[date] = None
    days_left: Optional[int] = None
    min_investment: Decimal
    participants: int
    progress: int
    description: Optional[str] = None


class JoinSPVIn(BaseModel):
    amount: Decimal = Field(..., gt=0)


# ──────────────────────────────────────────────────────────────────────────────
# Documents
# ──────────────────────────────────────────────────────────────────────────────
class DocumentOut(ORMModel):
    id: UUID4
    company_id: UUID4
    name: str
    type: str
    url: str
    file_size: int
    file_size_display: str = ""
    access_level: str
    version: int
    created_at: datetime


class DocumentDownload(BaseModel):
    id: UUID4
    name: str
    url: str


# ──────────────────────────────────────────────────────────────────────────────
# Deal room
# ──────────────────────────────────────────────────────────────────────────────
class MessageIn(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("message content cannot be empty")
        return value


class MessageOut(BaseModel):
    id: UUID4
    sender_id: Optional[UUID4] = None
    sender_name: str
    sender_role: str
    content: str
    created_at: datetime
    read: bool


class DealRoomOut(BaseModel):
    founder_id: Optional[UUID4] = None
    messages: List[MessageOut]
    unread_count: int
    demo: bool = False


class MarkReadIn(BaseModel):
    message_ids: List[UUID4]


# ──────────────────────────────────────────────────────────────────────────────
# Notifications
# ──────────────────────────────────────────────────────────────────────────────
class NotificationOut(BaseModel):
    id: str
    message: str
    type: str
    is_read: bool
    created_at: datetime
    related_id: Optional[str] = None
    time_ago: str


class NotificationFeed(BaseModel):
    notifications: List[NotificationOut]
    unread_count: int
    badge: Optional[str] = None
    demo: bool = False


class UpdatedCount(BaseModel):
    updated: int


# ──────────────────────────────────────────────────────────────────────────────
# Analytics & dashboards
# ──────────────────────────────────────────────────────────────────────────────
class DateMetric(BaseModel):
    date: dt.date
    count: int


class EngagementMetric(BaseModel):
    name: str
    score: int
    actions: int


class AnalyticsSummary(BaseModel):
    total_views: int
    total_document_views: int
    average_score: int
    total_actions: int


class FounderAnalytics(BaseModel):
    investor_views: List[DateMetric]
    document_views: List[DateMetric]
    investor_engagement: List[EngagementMetric]
    summary: AnalyticsSummary
    demo: bool = False


class InvestorAnalytics(BaseModel):
    profile_views: List[DateMetric]
    document_views: List[DateMetric]
    portfolio_engagement: List[EngagementMetric]
    summary: AnalyticsSummary
    demo: bool = False


class FounderDashboard(BaseModel):
    user: Dict[str, Any]
    company: Dict[str, Any]
    funding_progress: Decimal
    latest_metrics: Optional[Dict[str, Any]] = None
    recent_investments: List[Dict[str, Any]]
    document_count: int
    demo: bool = False


class InvestorDashboard(BaseModel):
    user: Dict[str, Any]
    recent_investments: List[Dict[str, Any]]
    total_invested: Decimal
    active_investments: int
    spv_memberships: List[Dict[str, Any]]
    recent_companies: List[Dict[str, Any]]
    demo: bool = False
