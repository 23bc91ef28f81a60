import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from pydantic import UUID4
from sqlalchemy.orm import Session

from capconnect import finance
from capconnect.api.deps import get_founder_company, require_founder, require_investor
from capconnect.api.schemas import (
    CompanyCard,
    CompanyFiltersOut,
    CompanyIn,
    CompanyOut,
    CompanyUpdate,
    FounderInvestmentRow,
    MetricsIn,
    MetricsOut,
)
from capconnect.database import crud
from capconnect.database.database import get_db
from capconnect.database.models import Company, User
from capconnect.notifications.notifier import notify_user

logger = logging.getLogger(__name__)
router = APIRouter()


def company_card(company: Company) -> CompanyCard:
    latest = company.financial_metrics[0] if company.financial_metrics else None
    return CompanyCard(
        **CompanyOut.model_validate(company).model_dump(),
        founder_name=company.founder.full_name if company.founder else None,
        founder_verified=bool(company.founder and company.founder.is_verified),
        latest_metrics=MetricsOut.model_validate(latest) if latest else None,
        funding_progress=finance.funding_progress(company.current_raised, company.target_raise),
    )


# ──────────────────────────────────────────────────────────────────────────────
#  Founder: own company profile
# ──────────────────────────────────────────────────────────────────────────────
@router.post("/companies", response_model=CompanyOut, status_code=status.HTTP_201_CREATED)
def create_company(
    company_in: CompanyIn,
    user: User = Depends(require_founder),
    db: Session = Depends(get_db),
) -> CompanyOut:
    if crud.get_company_for_user(db, user.id) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Company profile already exists")

    company = crud.create_company(db, user.id, company_in.model_dump())
    logger.info("Founder %s created company %s", user.id, company.id)
    return CompanyOut.model_validate(company)


@router.get("/companies/me", response_model=CompanyOut)
def read_my_company(company: Company = Depends(get_founder_company)) -> CompanyOut:
    return CompanyOut.model_validate(company)


@router.patch("/companies/me", response_model=CompanyOut)
def update_my_company(
    changes: CompanyUpdate,
    company: Company = Depends(get_founder_company),
    db: Session = Depends(get_db),
) -> CompanyOut:
    company = crud.update_company(db, company, changes.model_dump(exclude_unset=True))
    return CompanyOut.model_validate(company)


@router.post("/companies/me/metrics", response_model=MetricsOut, status_code=status.HTTP_201_CREATED)
def report_metrics(
    metrics_in: MetricsIn,
    company: Company = Depends(get_founder_company),
    db: Session = Depends(get_db),
) -> MetricsOut:
    """
    Record a month of financial metrics. ARR defaults to MRR x 12 and the
    runway is derived from cash on hand when not reported directly.
    """
    data = metrics_in.model_dump()
    if data["arr"] is None:
        data["arr"] = finance.annual_from_monthly(data["mrr"])
    if data["runway_months"] is None and data["cash_on_hand"] is not None:
        data["runway_months"] = finance.runway_months(data["cash_on_hand"], data["burn_rate"])

    row = crud.upsert_metrics(db, company.id, data)
    return MetricsOut.model_validate(row)


@router.get("/companies/me/metrics", response_model=List[MetricsOut])
def list_my_metrics(
    company: Company = Depends(get_founder_company),
    db: Session = Depends(get_db),
) -> List[MetricsOut]:
    return [MetricsOut.model_validate(m) for m in crud.list_metrics(db, company.id)]


@router.get("/companies/me/investments", response_model=List[FounderInvestmentRow])
def list_my_investors(
    company: Company = Depends(get_founder_company),
    db: Session = Depends(get_db),
) -> List[FounderInvestmentRow]:
    return [
        FounderInvestmentRow.model_validate(inv).model_copy(
            update={"investor_name": crud.public_name(inv.investor)}
        )
        for inv in crud.company_investments(db, company.id, limit=5)
    ]


# ──────────────────────────────────────────────────────────────────────────────
#  Investor: browse
# ──────────────────────────────────────────────────────────────────────────────
@router.get("/companies", response_model=List[CompanyCard])
def browse_companies(
    industry: Optional[str] = Query(None),
    stage: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    user: User = Depends(require_investor),
    db: Session = Depends(get_db),
) -> List[CompanyCard]:
    companies = crud.browse_companies(db, user.id, industry=industry, stage=stage, search=search)
    return [company_card(c) for c in companies]


@router.get("/companies/filters", response_model=CompanyFiltersOut)
def company_filters(
    user: User = Depends(require_investor),
    db: Session = Depends(get_db),
) -> CompanyFiltersOut:
    return CompanyFiltersOut(**crud.company_filter_values(db))


@router.get("/companies/{company_id}", response_model=CompanyCard)
def read_company(
    company_id: UUID4 = Path(...),
    user: User = Depends(require_investor),
    db: Session = Depends(get_db),
) -> CompanyCard:
    company = crud.get_company(db, company_id)
    if company is None:
        raise HTTPException(status_code=404, detail="Company not found")
    return company_card(company)


@router.post("/companies/{company_id}/views", status_code=status.HTTP_204_NO_CONTENT)
def record_profile_view(
    company_id: UUID4 = Path(...),
    user: User = Depends(require_investor),
    db: Session = Depends(get_db),
) -> None:
    """An investor opened a company profile: count it and tell the founder."""
    company = crud.get_company(db, company_id)
    if company is None:
        raise HTTPException(status_code=404, detail="Company not found")

    crud.record_company_view(db, company.id, user.id)
    crud.record_engagement(db, company, user.id)
    notify_user(
        db,
        company.user_id,
        f"{crud.public_name(user)} viewed your company profile",
        type="view",
        related_id=company.id,
    )
    db.commit()
