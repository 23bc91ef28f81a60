import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from capconnect import demo, finance
from capconnect.api.deps import founder_or_demo, investor_or_demo
from capconnect.api.schemas import CompanyOut, FounderDashboard, InvestorDashboard, MetricsOut, UserOut
from capconnect.database import crud
from capconnect.database.database import get_db
from capconnect.database.models import User

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/dashboard/founder", response_model=FounderDashboard)
def founder_dashboard(
    user: Optional[User] = Depends(founder_or_demo),
    db: Session = Depends(get_db),
):
    """
    KPI overview for a founder. Without a company profile this answers 404
    `company_required` so the client can send the founder to company creation.
    """
    if user is None:
        return demo.founder_dashboard()

    company = crud.get_company_for_user(db, user.id)
    if company is None:
        raise HTTPException(status_code=404, detail="company_required")

    latest = crud.latest_metrics(db, company.id)
    recent = [
        {
            "id": inv.id,
            "amount": inv.amount,
            "instrument": inv.instrument,
            "status": inv.status,
            "date": inv.date,
            "investor_name": crud.public_name(inv.investor),
        }
        for inv in crud.company_investments(db, company.id, limit=5)
    ]
    return FounderDashboard(
        user=UserOut.model_validate(user).model_dump(),
        company=CompanyOut.model_validate(company).model_dump(),
        funding_progress=finance.funding_progress(company.current_raised, company.target_raise),
        latest_metrics=MetricsOut.model_validate(latest).model_dump() if latest else None,
        recent_investments=recent,
        document_count=crud.count_documents(db, company.id),
    )


@router.get("/dashboard/investor", response_model=InvestorDashboard)
def investor_dashboard(
    user: Optional[User] = Depends(investor_or_demo),
    db: Session = Depends(get_db),
):
    if user is None:
        return demo.investor_dashboard()

    recent = [
        {
            "id": inv.id,
            "amount": inv.amount,
            "instrument": inv.instrument,
            "status": inv.status,
            "date": inv.date,
            "company": {
                "id": inv.company.id,
                "name": inv.company.name,
                "industry": inv.company.industry,
                "stage": inv.company.stage,
                "description": inv.company.description,
            },
        }
        for inv in crud.investor_investments(db, user.id, limit=5, order="created")
    ]
    memberships = [
        {
            "id": m.id,
            "spv_id": m.spv_id,
            "spv_name": m.spv.name,
            "company_name": m.spv.company.name if m.spv.company else None,
            "amount_committed": m.amount_committed,
            "status": m.status,
            "target_raise": m.spv.target_raise,
            "committed_amount": m.spv.committed_amount,
        }
        for m in crud.investor_spv_memberships(db, user.id)
    ]
    committed = [inv for inv in crud.investor_investments(db, user.id) if inv.status == "committed"]
    recent_companies = [
        {
            "id": c.id,
            "name": c.name,
            "industry": c.industry,
            "stage": c.stage,
            "description": c.description,
            "target_raise": c.target_raise,
        }
        for c in crud.recent_companies(db, limit=6)
    ]
    return InvestorDashboard(
        user=UserOut.model_validate(user).model_dump(),
        recent_investments=recent,
        total_invested=crud.committed_total(db, user.id),
        active_investments=len(committed),
        spv_memberships=memberships,
        recent_companies=recent_companies,
    )
