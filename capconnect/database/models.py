import datetime
import uuid

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from capconnect.database.database import Base

MONEY = Numeric(18, 2)


def utcnow() -> datetime.datetime:
    """Naive UTC timestamp; the Supabase columns are `timestamp without time zone`."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


class User(Base):
    """
    Profile row for a Supabase-auth user. `id` is the auth user id, so the
    row is created after the first sign-in (role selection).
    """
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True)
    email = Column(String)  # phone and some OAuth sign-ins carry none
    role = Column(String, nullable=False)  # founder | investor
    full_name = Column(String, nullable=False)
    bio = Column(Text)
    linkedin_url = Column(String)
    is_stealth = Column(Boolean, nullable=False, default=False)
    is_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<User id={self.id} role={self.role}>"


class Company(Base):
    __tablename__ = "companies"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    industry = Column(String, nullable=False)
    stage = Column(String, nullable=False, default="pre-seed")
    website = Column(String)
    description = Column(Text, nullable=False, default="")
    founded_date = Column(Date)
    country = Column(String, nullable=False, default="US")
    location = Column(String)
    logo_url = Column(String)

    target_raise = Column(MONEY)
    current_raised = Column(MONEY, nullable=False, default=0)
    current_valuation = Column(MONEY)

    # denormalised for the investor analytics view
    engagement_score = Column(Integer, nullable=False, default=0)
    interaction_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    founder = relationship("User", lazy="joined")
    financial_metrics = relationship(
        "FinancialMetric",
        order_by="FinancialMetric.month.desc()",
        cascade="all, delete-orphan",
        back_populates="company",
    )

    def __repr__(self):
        return f"<Company id={self.id} name={self.name!r}>"


class FinancialMetric(Base):
    __tablename__ = "financial_metrics"
    __table_args__ = (UniqueConstraint("company_id", "month", name="uq_metrics_company_month"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(Uuid, ForeignKey("companies.id"), nullable=False, index=True)
    month = Column(Date, nullable=False)
    mrr = Column(MONEY, nullable=False, default=0)
    arr = Column(MONEY, nullable=False, default=0)
    burn_rate = Column(MONEY, nullable=False, default=0)
    runway_months = Column(Integer)
    cac = Column(MONEY)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    company = relationship("Company", back_populates="financial_metrics")


# --------------------------------------------------------------------------- #
# Cap table
# --------------------------------------------------------------------------- #
class ShareClass(Base):
    __tablename__ = "share_classes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(Uuid, ForeignKey("companies.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    class_type = Column(String, nullable=False)  # common | preferred | option_pool | safe
    price_per_share = Column(Numeric(18, 4))
    total_shares = Column(BigInteger, nullable=False, default=0)
    outstanding_shares = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Stakeholder(Base):
    __tablename__ = "stakeholders"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(Uuid, ForeignKey("companies.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    email = Column(String)
    stakeholder_type = Column(String, nullable=False, default="investor")
    created_at = Column(DateTime, default=utcnow, nullable=False)

    securities = relationship(
        "Security",
        cascade="all, delete-orphan",
        order_by="Security.created_at",
        back_populates="stakeholder",
    )


class Security(Base):
    __tablename__ = "securities"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    stakeholder_id = Column(Uuid, ForeignKey("stakeholders.id"), nullable=False, index=True)
    share_class_id = Column(Uuid, ForeignKey("share_classes.id"), nullable=False, index=True)
    shares = Column(BigInteger, nullable=False)
    issue_date = Column(Date)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    stakeholder = relationship("Stakeholder", back_populates="securities")
    share_class = relationship("ShareClass", lazy="joined")


# --------------------------------------------------------------------------- #
# Investments & SPVs
# --------------------------------------------------------------------------- #
class Investment(Base):
    __tablename__ = "investments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    investor_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    company_id = Column(Uuid, ForeignKey("companies.id"), nullable=False, index=True)
    amount = Column(MONEY, nullable=False)
    percentage = Column(Numeric(9, 4))
    date = Column(Date, nullable=False, default=datetime.date.today)
    instrument = Column(String, nullable=False, default="SAFE")
    # committed | in_discussion | withdrawn
    status = Column(String, nullable=False, default="committed")
    initial_valuation = Column(MONEY)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    company = relationship("Company", lazy="joined")
    investor = relationship("User", lazy="joined")
    documents = relationship("Document", back_populates="investment")


class SPV(Base):
    __tablename__ = "spvs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(Uuid, ForeignKey("companies.id"), nullable=False, index=True)
    creator_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text)
    target_raise = Column(MONEY, nullable=False)
    committed_amount = Column(MONEY, nullable=False, default=0)
    minimum_investment = Column(MONEY, nullable=False, default=1000)
    # open | filled | closed
    status = Column(String, nullable=False, default="open")
    expiry_date = Column(Date)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    company = relationship("Company", lazy="joined")
    members = relationship(
        "SPVMember",
        cascade="all, delete-orphan",
        order_by="SPVMember.created_at",
        back_populates="spv",
    )


class SPVMember(Base):
    __tablename__ = "spv_members"
    __table_args__ = (UniqueConstraint("spv_id", "investor_id", name="uq_spv_member"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    spv_id = Column(Uuid, ForeignKey("spvs.id"), nullable=False, index=True)
    investor_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    amount_committed = Column(MONEY, nullable=False, default=0)
    # pending | committed | withdrawn
    status = Column(String, nullable=False, default="pending")
    created_at = Column(DateTime, default=utcnow, nullable=False)

    spv = relationship("SPV", back_populates="members")
    investor = relationship("User", lazy="joined")


# --------------------------------------------------------------------------- #
# Data room
# --------------------------------------------------------------------------- #
class Document(Base):
    __tablename__ = "documents"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(Uuid, ForeignKey("companies.id"), nullable=False, index=True)
    investment_id = Column(Uuid, ForeignKey("investments.id"), index=True)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False, default="pitch_deck")
    url = Column(String, nullable=False)
    storage_path = Column(String, nullable=False)
    file_size = Column(BigInteger, nullable=False, default=0)
    # public | investors | admins
    access_level = Column(String, nullable=False, default="investors")
    version = Column(Integer, nullable=False, default=1)
    uploaded_by = Column(Uuid, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    investment = relationship("Investment", back_populates="documents")
    chunks = relationship(
        "DocumentChunk",
        cascade="all, delete-orphan",
        order_by="DocumentChunk.chunk_index",
    )


class DocumentChunk(Base):
    __tablename__ = "document_chunks"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    document_id = Column(Uuid, ForeignKey("documents.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    chunk_index = Column(Integer, nullable=False)


# --------------------------------------------------------------------------- #
# Deal room & notifications
# --------------------------------------------------------------------------- #
class Message(Base):
    __tablename__ = "messages"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    founder_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    sender_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    sender_role = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    sender = relationship("User", foreign_keys=[sender_id], lazy="joined")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    message = Column(String, nullable=False)
    # view | commitment | compliance | general
    type = Column(String, nullable=False, default="general")
    is_read = Column(Boolean, nullable=False, default=False)
    related_id = Column(String)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)


# --------------------------------------------------------------------------- #
# Analytics counters (one row per subject per day)
# --------------------------------------------------------------------------- #
class AnalyticsView(Base):
    __tablename__ = "analytics_views"
    __table_args__ = (UniqueConstraint("company_id", "date", name="uq_views_company_date"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(Uuid, ForeignKey("companies.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    count = Column(Integer, nullable=False, default=0)


class AnalyticsDocumentView(Base):
    __tablename__ = "analytics_document_views"
    __table_args__ = (UniqueConstraint("company_id", "date", name="uq_docviews_company_date"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(Uuid, ForeignKey("companies.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    count = Column(Integer, nullable=False, default=0)


class InvestorDocumentView(Base):
    __tablename__ = "investor_document_views"
    __table_args__ = (UniqueConstraint("investor_id", "date", name="uq_docviews_investor_date"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    investor_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    count = Column(Integer, nullable=False, default=0)


class InvestorEngagement(Base):
    __tablename__ = "investor_engagement"
    __table_args__ = (
        UniqueConstraint("company_id", "investor_id", name="uq_engagement_company_investor"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(Uuid, ForeignKey("companies.id"), nullable=False, index=True)
    investor_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    score = Column(Integer, nullable=False, default=0)
    action_count = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    investor = relationship("User", lazy="joined")


class InvestorProfileView(Base):
    __tablename__ = "investor_analytics_views"
    __table_args__ = (UniqueConstraint("investor_id", "date", name="uq_views_investor_date"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    investor_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    count = Column(Integer, nullable=False, default=0)
