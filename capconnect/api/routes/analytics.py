import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from capconnect import demo, finance
from capconnect.api.deps import founder_or_demo, investor_or_demo, require_founder
from capconnect.api.schemas import FounderAnalytics, InvestorAnalytics
from capconnect.database import crud
from capconnect.database.database import get_db
from capconnect.database.models import (
    AnalyticsDocumentView,
    AnalyticsView,
    InvestorDocumentView,
    InvestorProfileView,
    User,
)
from capconnect.storage.pdfgenerator import generate_analytics_pdf

logger = logging.getLogger(__name__)
router = APIRouter()


def founder_analytics_payload(db: Session, user: User) -> dict:
    company = crud.get_company_for_user(db, user.id)
    if company is None:
        views, document_views, engagement = [], [], []
    else:
        views = crud.daily_series(db, AnalyticsView, "company_id", company.id)
        document_views = crud.daily_series(db, AnalyticsDocumentView, "company_id", company.id)
        engagement = [
            {"name": crud.public_name(row.investor), "score": row.score, "actions": row.action_count}
            for row in crud.top_engagement(db, company.id)
        ]
    return {
        "investor_views": views,
        "document_views": document_views,
        "investor_engagement": engagement,
        "summary": finance.analytics_summary(views, document_views, engagement),
    }


@router.get("/analytics/founder", response_model=FounderAnalytics)
def founder_analytics(
    user: Optional[User] = Depends(founder_or_demo),
    db: Session = Depends(get_db),
):
    if user is None:
        return demo.founder_analytics()
    return founder_analytics_payload(db, user)


@router.get("/analytics/founder/export")
def export_founder_analytics(
    user: User = Depends(require_founder),
    db: Session = Depends(get_db),
) -> Response:
    """The founder analytics rendered as a PDF report."""
    payload = founder_analytics_payload(db, user)
    company = crud.get_company_for_user(db, user.id)
    company_name = company.name if company else user.full_name

    pdf_bytes = generate_analytics_pdf(payload, company_name=company_name, prepared_for=user.full_name)
    filename = re.sub(r"[^A-Za-z0-9_-]+", "_", company_name).strip("_") or "analytics"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}_analytics.pdf"'},
    )


@router.get("/analytics/investor", response_model=InvestorAnalytics)
def investor_analytics(
    user: Optional[User] = Depends(investor_or_demo),
    db: Session = Depends(get_db),
):
    if user is None:
        return demo.investor_analytics()

    views = crud.daily_series(db, InvestorProfileView, "investor_id", user.id)
    document_views = crud.daily_series(db, InvestorDocumentView, "investor_id", user.id)
    companies = crud.companies_by_engagement(db, crud.invested_company_ids(db, user.id))
    engagement = [
        {"name": c.name, "score": c.engagement_score or 0, "actions": c.interaction_count or 0}
        for c in companies
    ]
    return {
        "profile_views": views,
        "document_views": document_views,
        "portfolio_engagement": engagement,
        "summary": finance.analytics_summary(views, document_views, engagement),
    }
