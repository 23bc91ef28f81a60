import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from capconnect import finance
from capconnect.api.deps import require_investor
from capconnect.api.schemas import (
    CompanySummary,
    InvestmentIn,
    InvestmentOut,
    PortfolioOut,
    PortfolioPosition,
    PortfolioSummary,
)
from capconnect.database import crud
from capconnect.database.database import get_db
from capconnect.database.models import Investment, User
from capconnect.notifications.notifier import notify_investment_commitment

logger = logging.getLogger(__name__)
router = APIRouter()


def portfolio_position(inv: Investment) -> PortfolioPosition:
    company = inv.company
    return PortfolioPosition(
        id=inv.id,
        company=CompanySummary(
            id=company.id,
            name=company.name,
            logo=company.logo_url,
            industry=company.industry,
            stage=company.stage,
            location=company.location,
        ),
        amount=inv.amount,
        percentage=inv.percentage,
        date=inv.date,
        instrument=inv.instrument,
        status=inv.status,
        valuation=inv.initial_valuation,
        current_valuation=company.current_valuation,
        current_equity_value=finance.equity_value(company.current_valuation, inv.percentage),
        performance=finance.performance(company.current_valuation, inv.initial_valuation),
        documents=len(inv.documents),
    )


@router.post("/investments", response_model=InvestmentOut, status_code=status.HTTP_201_CREATED)
def create_investment(
    investment_in: InvestmentIn,
    user: User = Depends(require_investor),
    db: Session = Depends(get_db),
) -> InvestmentOut:
    """
    Commit to a company. The valuation at commitment time is kept for
    performance tracking and the founder is notified.
    """
    company = crud.get_company(db, investment_in.company_id)
    if company is None:
        raise HTTPException(status_code=404, detail="Company not found")

    investment = crud.create_investment(db, user.id, company, investment_in.model_dump())
    if investment.status == "committed":
        notify_investment_commitment(db, company.user_id, company.id, investment.amount)
    db.commit()

    logger.info(
        "Investor %s committed %s (%s) to company %s",
        user.id, investment.amount, investment.instrument, company.id,
    )
    return InvestmentOut.model_validate(investment)


@router.get("/investments", response_model=PortfolioOut)
def read_portfolio(
    user: User = Depends(require_investor),
    db: Session = Depends(get_db),
) -> PortfolioOut:
    positions = [portfolio_position(inv) for inv in crud.investor_investments(db, user.id)]
    summary = finance.portfolio_summary(
        {
            "amount": p.amount,
            "current_valuation": p.current_valuation,
            "percentage": p.percentage,
        }
        for p in positions
    )
    return PortfolioOut(investments=positions, portfolio_summary=PortfolioSummary(**summary))
