import datetime
import uuid
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from capconnect import finance
from capconnect.database.models import (
    SPV,
    AnalyticsDocumentView,
    AnalyticsView,
    Company,
    Document,
    DocumentChunk,
    FinancialMetric,
    Investment,
    InvestorDocumentView,
    InvestorEngagement,
    InvestorProfileView,
    Message,
    Notification,
    SPVMember,
    Security,
    ShareClass,
    Stakeholder,
    User,
    utcnow,
)

ID = Union[str, uuid.UUID]


def _uuid(value: ID) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


# ──────────────────────────────────────────────────────────────────────────────
# Users
# ──────────────────────────────────────────────────────────────────────────────
def get_user(db: Session, user_id: ID) -> Optional[User]:
    return db.get(User, _uuid(user_id))


def create_user(db: Session, user_id: ID, email: Optional[str], data: Dict[str, Any]) -> User:
    user = User(id=_uuid(user_id), email=email, **data)
    if user.role == "founder":
        user.is_stealth = False
    db.add(user)
    db.commit()
    return user


def public_name(user: Optional[User]) -> str:
    """Name shown to counterparties; stealth investors stay anonymous."""
    if user is None:
        return "Unknown"
    if user.role == "investor" and user.is_stealth:
        return "An investor"
    return user.full_name


# ──────────────────────────────────────────────────────────────────────────────
# Companies
# ──────────────────────────────────────────────────────────────────────────────
def get_company(db: Session, company_id: ID) -> Optional[Company]:
    return db.get(Company, _uuid(company_id))


def get_company_for_user(db: Session, user_id: ID) -> Optional[Company]:
    return (
        db.query(Company)
        .filter(Company.user_id == _uuid(user_id))
        .order_by(Company.created_at.asc())
        .first()
    )


def create_company(db: Session, user_id: ID, data: Dict[str, Any]) -> Company:
    company = Company(user_id=_uuid(user_id), **data)
    db.add(company)
    db.commit()
    return company


def update_company(db: Session, company: Company, changes: Dict[str, Any]) -> Company:
    for key, value in changes.items():
        setattr(company, key, value)
    company.updated_at = utcnow()
    db.commit()
    return company


def browse_companies(
    db: Session,
    exclude_user_id: ID,
    industry: Optional[str] = None,
    stage: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Company]:
    query = db.query(Company).filter(Company.user_id != _uuid(exclude_user_id))
    if industry and industry != "all":
        query = query.filter(Company.industry == industry)
    if stage and stage != "all":
        query = query.filter(Company.stage == stage)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Company.name.ilike(pattern), Company.description.ilike(pattern)))
    return query.order_by(Company.created_at.desc()).all()


def company_filter_values(db: Session) -> Dict[str, List[str]]:
    rows = db.query(Company.industry, Company.stage).all()
    return {
        "industries": sorted({r.industry for r in rows if r.industry}),
        "stages": sorted({r.stage for r in rows if r.stage}),
    }


def recent_companies(db: Session, limit: int = 6) -> List[Company]:
    return db.query(Company).order_by(Company.created_at.desc()).limit(limit).all()


# ──────────────────────────────────────────────────────────────────────────────
# Financial metrics
# ──────────────────────────────────────────────────────────────────────────────
def latest_metrics(db: Session, company_id: ID) -> Optional[FinancialMetric]:
    return (
        db.query(FinancialMetric)
        .filter(FinancialMetric.company_id == _uuid(company_id))
        .order_by(FinancialMetric.month.desc())
        .first()
    )


def list_metrics(db: Session, company_id: ID) -> List[FinancialMetric]:
    return (
        db.query(FinancialMetric)
        .filter(FinancialMetric.company_id == _uuid(company_id))
        .order_by(FinancialMetric.month.desc())
        .all()
    )


def upsert_metrics(db: Session, company_id: ID, data: Dict[str, Any]) -> FinancialMetric:
    """One row per (company, month): a second report for a month replaces the first."""
    month = data["month"].replace(day=1)
    row = (
        db.query(FinancialMetric)
        .filter(FinancialMetric.company_id == _uuid(company_id), FinancialMetric.month == month)
        .first()
    )
    if row is None:
        row = FinancialMetric(company_id=_uuid(company_id), month=month)
        db.add(row)
    for key in ("mrr", "arr", "burn_rate", "runway_months", "cac"):
        setattr(row, key, data.get(key))
    db.commit()
    return row


# ──────────────────────────────────────────────────────────────────────────────
# Cap table
# ──────────────────────────────────────────────────────────────────────────────
def list_share_classes(db: Session, company_id: ID) -> List[ShareClass]:
    return (
        db.query(ShareClass)
        .filter(ShareClass.company_id == _uuid(company_id))
        .order_by(ShareClass.created_at.asc())
        .all()
    )


def get_share_class(db: Session, company_id: ID, share_class_id: ID) -> Optional[ShareClass]:
    return (
        db.query(ShareClass)
        .filter(ShareClass.id == _uuid(share_class_id), ShareClass.company_id == _uuid(company_id))
        .first()
    )


def list_stakeholders(db: Session, company_id: ID) -> List[Stakeholder]:
    return (
        db.query(Stakeholder)
        .filter(Stakeholder.company_id == _uuid(company_id))
        .order_by(Stakeholder.created_at.asc())
        .all()
    )


def get_stakeholder(db: Session, company_id: ID, stakeholder_id: ID) -> Optional[Stakeholder]:
    return (
        db.query(Stakeholder)
        .filter(Stakeholder.id == _uuid(stakeholder_id), Stakeholder.company_id == _uuid(company_id))
        .first()
    )


def issue_security(
    db: Session,
    stakeholder: Stakeholder,
    share_class: ShareClass,
    shares: int,
    issue_date: Optional[datetime.date] = None,
) -> Security:
    """Record a grant and move the shares into the class's outstanding count."""
    security = Security(
        stakeholder_id=stakeholder.id,
        share_class_id=share_class.id,
        shares=shares,
        issue_date=issue_date or datetime.date.today(),
    )
    share_class.outstanding_shares = (share_class.outstanding_shares or 0) + shares
    db.add(security)
    db.commit()
    return security


def share_class_in_use(db: Session, share_class_id: ID) -> bool:
    return (
        db.query(Security.id).filter(Security.share_class_id == _uuid(share_class_id)).first()
        is not None
    )


def issued_shares(db: Session, share_class_id: ID) -> int:
    total = (
        db.query(func.coalesce(func.sum(Security.shares), 0))
        .filter(Security.share_class_id == _uuid(share_class_id))
        .scalar()
    )
    return int(total or 0)


# ──────────────────────────────────────────────────────────────────────────────
# Investments
# ──────────────────────────────────────────────────────────────────────────────
def create_investment(db: Session, investor_id: ID, company: Company, data: Dict[str, Any]) -> Investment:
    investment = Investment(
        investor_id=_uuid(investor_id),
        company_id=company.id,
        amount=data["amount"],
        instrument=data["instrument"],
        percentage=data.get("percentage"),
        status=data["status"],
        date=data.get("date") or datetime.date.today(),
        initial_valuation=company.current_valuation,
    )
    db.add(investment)
    if investment.status == "committed":
        company.current_raised = finance.to_decimal(company.current_raised) + finance.to_decimal(investment.amount)
    db.flush()
    return investment


def investor_investments(db: Session, investor_id: ID, limit: Optional[int] = None, order: str = "date") -> List[Investment]:
    column = Investment.date if order == "date" else Investment.created_at
    query = (
        db.query(Investment)
        .filter(Investment.investor_id == _uuid(investor_id))
        .order_by(column.desc(), Investment.created_at.desc())
    )
    if limit:
        query = query.limit(limit)
    return query.all()


def company_investments(db: Session, company_id: ID, limit: int = 5) -> List[Investment]:
    return (
        db.query(Investment)
        .filter(Investment.company_id == _uuid(company_id))
        .order_by(Investment.created_at.desc())
        .limit(limit)
        .all()
    )


def committed_total(db: Session, investor_id: ID) -> Decimal:
    total = (
        db.query(func.coalesce(func.sum(Investment.amount), 0))
        .filter(Investment.investor_id == _uuid(investor_id), Investment.status == "committed")
        .scalar()
    )
    return finance.to_decimal(total)


def invested_company_ids(db: Session, investor_id: ID) -> List[uuid.UUID]:
    rows = (
        db.query(Investment.company_id)
        .filter(Investment.investor_id == _uuid(investor_id))
        .distinct()
        .all()
    )
    return [r.company_id for r in rows]


# ──────────────────────────────────────────────────────────────────────────────
# SPVs
# ──────────────────────────────────────────────────────────────────────────────
def get_spv(db: Session, spv_id: ID) -> Optional[SPV]:
    return db.get(SPV, _uuid(spv_id))


def company_spvs(db: Session, company_id: ID) -> List[SPV]:
    return (
        db.query(SPV)
        .filter(SPV.company_id == _uuid(company_id))
        .order_by(SPV.created_at.desc())
        .all()
    )


def available_spvs(db: Session, investor_id: ID) -> List[SPV]:
    """Open/filled SPVs the investor has not (actively) joined yet."""
    joined = select(SPVMember.spv_id).where(
        SPVMember.investor_id == _uuid(investor_id), SPVMember.status != "withdrawn"
    )
    return (
        db.query(SPV)
        .filter(SPV.status.in_(("open", "filled")), SPV.id.not_in(joined))
        .order_by(SPV.created_at.desc())
        .all()
    )


def get_spv_member(db: Session, spv_id: ID, investor_id: ID) -> Optional[SPVMember]:
    return (
        db.query(SPVMember)
        .filter(SPVMember.spv_id == _uuid(spv_id), SPVMember.investor_id == _uuid(investor_id))
        .first()
    )


def investor_spv_memberships(db: Session, investor_id: ID) -> List[SPVMember]:
    return (
        db.query(SPVMember)
        .filter(SPVMember.investor_id == _uuid(investor_id), SPVMember.status != "withdrawn")
        .order_by(SPVMember.created_at.desc())
        .all()
    )


# ──────────────────────────────────────────────────────────────────────────────
# Documents
# ──────────────────────────────────────────────────────────────────────────────
def get_document(db: Session, document_id: ID) -> Optional[Document]:
    return db.get(Document, _uuid(document_id))


def list_documents(db: Session, company_id: ID, access_levels: Optional[Sequence[str]] = None) -> List[Document]:
    query = db.query(Document).filter(Document.company_id == _uuid(company_id))
    if access_levels is not None:
        query = query.filter(Document.access_level.in_(tuple(access_levels)))
    return query.order_by(Document.created_at.desc()).all()


def count_documents(db: Session, company_id: ID) -> int:
    return db.query(func.count(Document.id)).filter(Document.company_id == _uuid(company_id)).scalar() or 0


def next_document_version(db: Session, company_id: ID, name: str) -> int:
    current = (
        db.query(func.max(Document.version))
        .filter(Document.company_id == _uuid(company_id), Document.name == name)
        .scalar()
    )
    return (current or 0) + 1


def add_document_chunks(db: Session, document: Document, chunks: Iterable[str]) -> int:
    count = 0
    for index, content in enumerate(chunks):
        db.add(DocumentChunk(document_id=document.id, content=content, chunk_index=index))
        count += 1
    return count


# ──────────────────────────────────────────────────────────────────────────────
# Deal room
# ──────────────────────────────────────────────────────────────────────────────
def thread_messages(db: Session, founder_id: ID) -> List[Message]:
    return (
        db.query(Message)
        .filter(Message.founder_id == _uuid(founder_id))
        .order_by(Message.created_at.asc())
        .all()
    )


def mark_messages_read(
    db: Session,
    message_ids: Sequence[ID],
    reader_role: str,
    founder_ids: Optional[Sequence[ID]] = None,
) -> int:
    """
    Flag messages read for `reader_role`. Messages sent by that role are left
    alone; `founder_ids` limits the update to those threads.
    """
    query = db.query(Message).filter(
        Message.id.in_([_uuid(m) for m in message_ids]),
        Message.read.is_(False),
        Message.sender_role != reader_role,
    )
    if founder_ids is not None:
        query = query.filter(Message.founder_id.in_([_uuid(f) for f in founder_ids]))
    updated = query.update({Message.read: True}, synchronize_session=False)
    db.commit()
    return updated


# ──────────────────────────────────────────────────────────────────────────────
# Notifications
# ──────────────────────────────────────────────────────────────────────────────
def list_notifications(
    db: Session,
    user_id: ID,
    limit: int = 20,
    since: Optional[datetime.datetime] = None,
) -> List[Notification]:
    query = db.query(Notification).filter(Notification.user_id == _uuid(user_id))
    if since is not None:
        query = query.filter(Notification.created_at > since)
    return query.order_by(Notification.created_at.desc()).limit(limit).all()


def count_unread_notifications(db: Session, user_id: ID) -> int:
    return (
        db.query(func.count(Notification.id))
        .filter(Notification.user_id == _uuid(user_id), Notification.is_read.is_(False))
        .scalar()
        or 0
    )


def get_notification(db: Session, user_id: ID, notification_id: ID) -> Optional[Notification]:
    return (
        db.query(Notification)
        .filter(Notification.id == _uuid(notification_id), Notification.user_id == _uuid(user_id))
        .first()
    )


def mark_all_notifications_read(db: Session, user_id: ID) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == _uuid(user_id), Notification.is_read.is_(False))
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.commit()
    return updated


# ──────────────────────────────────────────────────────────────────────────────
# Analytics counters
# ──────────────────────────────────────────────────────────────────────────────
def _bump_daily(db: Session, model, key_column: str, key_value: uuid.UUID, day: datetime.date):
    row = (
        db.query(model)
        .filter(getattr(model, key_column) == key_value, model.date == day)
        .first()
    )
    if row is None:
        row = model(**{key_column: key_value}, date=day, count=0)
        db.add(row)
    row.count = (row.count or 0) + 1
    return row


def record_company_view(
    db: Session,
    company_id: ID,
    investor_id: Optional[ID] = None,
    day: Optional[datetime.date] = None,
) -> AnalyticsView:
    day = day or datetime.date.today()
    if investor_id is not None:
        _bump_daily(db, InvestorProfileView, "investor_id", _uuid(investor_id), day)
    return _bump_daily(db, AnalyticsView, "company_id", _uuid(company_id), day)


def record_document_view(
    db: Session,
    company_id: ID,
    investor_id: Optional[ID] = None,
    day: Optional[datetime.date] = None,
) -> None:
    day = day or datetime.date.today()
    _bump_daily(db, AnalyticsDocumentView, "company_id", _uuid(company_id), day)
    if investor_id is not None:
        _bump_daily(db, InvestorDocumentView, "investor_id", _uuid(investor_id), day)


def record_engagement(db: Session, company: Company, investor_id: ID) -> InvestorEngagement:
    """
    Count one investor action against a company and refresh both the
    per-investor score and the company's aggregate score.
    """
    row = (
        db.query(InvestorEngagement)
        .filter(InvestorEngagement.company_id == company.id, InvestorEngagement.investor_id == _uuid(investor_id))
        .first()
    )
    if row is None:
        row = InvestorEngagement(company_id=company.id, investor_id=_uuid(investor_id), action_count=0, score=0)
        db.add(row)
    row.action_count = (row.action_count or 0) + 1
    row.score = finance.engagement_score(row.action_count)
    db.flush()

    scores = [
        r.score
        for r in db.query(InvestorEngagement.score).filter(InvestorEngagement.company_id == company.id).all()
    ]
    company.engagement_score = finance.average_score(scores)
    company.interaction_count = (company.interaction_count or 0) + 1
    return row


def daily_series(db: Session, model, key_column: str, key_value: ID, limit: int = 30) -> List[Dict[str, Any]]:
    """The newest `limit` days for a counter, returned oldest first."""
    rows = (
        db.query(model)
        .filter(getattr(model, key_column) == _uuid(key_value))
        .order_by(model.date.desc())
        .limit(limit)
        .all()
    )
    return [{"date": r.date, "count": r.count} for r in reversed(rows)]


def top_engagement(db: Session, company_id: ID, limit: int = 10) -> List[InvestorEngagement]:
    return (
        db.query(InvestorEngagement)
        .filter(InvestorEngagement.company_id == _uuid(company_id))
        .order_by(InvestorEngagement.score.desc(), InvestorEngagement.action_count.desc())
        .limit(limit)
        .all()
    )


def companies_by_engagement(db: Session, company_ids: Sequence[ID], limit: int = 10) -> List[Company]:
    if not company_ids:
        return []
    return (
        db.query(Company)
        .filter(Company.id.in_([_uuid(c) for c in company_ids]))
        .order_by(Company.engagement_score.desc())
        .limit(limit)
        .all()
    )
