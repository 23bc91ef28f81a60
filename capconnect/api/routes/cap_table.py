import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status
from pydantic import UUID4
from sqlalchemy.orm import Session

from capconnect import finance
from capconnect.api.deps import get_founder_company
from capconnect.api.schemas import (
    CapTableOut,
    ChartSlice,
    SecurityIn,
    SecurityOut,
    ShareClassIn,
    ShareClassOut,
    ShareClassRow,
    ShareClassUpdate,
    StakeholderHolding,
    StakeholderIn,
    StakeholderOut,
)
from capconnect.database import crud
from capconnect.database.database import get_db
from capconnect.database.models import Company, ShareClass, Stakeholder

logger = logging.getLogger(__name__)
router = APIRouter()

CHART_COLORS = ["#3B82F6", "#8B5CF6", "#10B981", "#F59E0B", "#EF4444", "#6B7280"]


def build_cap_table(company: Company, share_classes: List[ShareClass], stakeholders: List[Stakeholder]) -> CapTableOut:
    """Ownership percentages are taken against the outstanding (not authorised) shares."""
    total_shares = sum(int(sc.outstanding_shares or 0) for sc in share_classes)

    rows = [
        ShareClassRow(
            **ShareClassOut.model_validate(sc).model_dump(),
            percent_of_total=finance.percentage(sc.outstanding_shares or 0, total_shares),
        )
        for sc in share_classes
    ]

    holdings = []
    for holder in stakeholders:
        securities = [
            SecurityOut(
                id=sec.id,
                share_class_id=sec.share_class_id,
                share_class_name=sec.share_class.name,
                class_type=sec.share_class.class_type,
                shares=sec.shares,
                issue_date=sec.issue_date,
            )
            for sec in holder.securities
        ]
        held = sum(s.shares for s in securities)
        holdings.append(
            StakeholderHolding(
                **StakeholderOut.model_validate(holder).model_dump(),
                securities=securities,
                total_shares=held,
                ownership=finance.percentage(held, total_shares),
            )
        )

    chart = [
        ChartSlice(
            name=sc.name,
            value=int(sc.outstanding_shares),
            color=CHART_COLORS[index % len(CHART_COLORS)],
            type=sc.class_type,
        )
        for index, sc in enumerate(s for s in share_classes if int(s.outstanding_shares or 0) > 0)
    ]

    return CapTableOut(
        company_id=company.id,
        company_name=company.name,
        total_shares=total_shares,
        share_classes=rows,
        stakeholders=holdings,
        chart=chart,
    )


@router.get("/cap-table", response_model=CapTableOut)
def read_cap_table(
    company: Company = Depends(get_founder_company),
    db: Session = Depends(get_db),
) -> CapTableOut:
    return build_cap_table(
        company,
        crud.list_share_classes(db, company.id),
        crud.list_stakeholders(db, company.id),
    )


# ──────────────────────────────────────────────────────────────────────────────
#  Share classes
# ──────────────────────────────────────────────────────────────────────────────
@router.get("/cap-table/share-classes", response_model=List[ShareClassOut])
def list_share_classes(
    company: Company = Depends(get_founder_company),
    db: Session = Depends(get_db),
) -> List[ShareClassOut]:
    return [ShareClassOut.model_validate(sc) for sc in crud.list_share_classes(db, company.id)]


@router.post("/cap-table/share-classes", response_model=ShareClassOut, status_code=status.HTTP_201_CREATED)
def create_share_class(
    share_class_in: ShareClassIn,
    company: Company = Depends(get_founder_company),
    db: Session = Depends(get_db),
) -> ShareClassOut:
    share_class = ShareClass(company_id=company.id, **share_class_in.model_dump())
    db.add(share_class)
    db.commit()
    logger.info("Created share class %s (%s) for company %s", share_class.name, share_class.class_type, company.id)
    return ShareClassOut.model_validate(share_class)


@router.patch("/cap-table/share-classes/{share_class_id}", response_model=ShareClassOut)
def update_share_class(
    changes: ShareClassUpdate,
    share_class_id: UUID4 = Path(...),
    company: Company = Depends(get_founder_company),
    db: Session = Depends(get_db),
) -> ShareClassOut:
    share_class = crud.get_share_class(db, company.id, share_class_id)
    if share_class is None:
        raise HTTPException(status_code=404, detail="Share class not found")

    updates = changes.model_dump(exclude_unset=True)
    total = updates.get("total_shares", share_class.total_shares)
    outstanding = updates.get("outstanding_shares", share_class.outstanding_shares)
    if outstanding > total:
        raise HTTPException(status_code=422, detail="outstanding_shares cannot exceed total_shares")
    issued = crud.issued_shares(db, share_class.id)
    if outstanding < issued:
        raise HTTPException(
            status_code=422,
            detail=f"outstanding_shares cannot be below the {issued} shares already issued",
        )

    for key, value in updates.items():
        setattr(share_class, key, value)
    db.commit()
    return ShareClassOut.model_validate(share_class)


@router.delete("/cap-table/share-classes/{share_class_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_share_class(
    share_class_id: UUID4 = Path(...),
    company: Company = Depends(get_founder_company),
    db: Session = Depends(get_db),
) -> None:
    share_class = crud.get_share_class(db, company.id, share_class_id)
    if share_class is None:
        raise HTTPException(status_code=404, detail="Share class not found")
    if crud.share_class_in_use(db, share_class.id):
        raise HTTPException(status_code=409, detail="Share class has issued securities")
    db.delete(share_class)
    db.commit()


# ──────────────────────────────────────────────────────────────────────────────
#  Stakeholders & securities
# ──────────────────────────────────────────────────────────────────────────────
@router.get("/cap-table/stakeholders", response_model=List[StakeholderOut])
def list_stakeholders(
    company: Company = Depends(get_founder_company),
    db: Session = Depends(get_db),
) -> List[StakeholderOut]:
    return [StakeholderOut.model_validate(s) for s in crud.list_stakeholders(db, company.id)]


@router.post("/cap-table/stakeholders", response_model=StakeholderOut, status_code=status.HTTP_201_CREATED)
def create_stakeholder(
    stakeholder_in: StakeholderIn,
    company: Company = Depends(get_founder_company),
    db: Session = Depends(get_db),
) -> StakeholderOut:
    stakeholder = Stakeholder(company_id=company.id, **stakeholder_in.model_dump())
    db.add(stakeholder)
    db.commit()
    return StakeholderOut.model_validate(stakeholder)


@router.post("/cap-table/securities", response_model=SecurityOut, status_code=status.HTTP_201_CREATED)
def issue_security(
    security_in: SecurityIn,
    company: Company = Depends(get_founder_company),
    db: Session = Depends(get_db),
) -> SecurityOut:
    stakeholder = crud.get_stakeholder(db, company.id, security_in.stakeholder_id)
    if stakeholder is None:
        raise HTTPException(status_code=404, detail="Stakeholder not found")
    share_class = crud.get_share_class(db, company.id, security_in.share_class_id)
    if share_class is None:
        raise HTTPException(status_code=404, detail="Share class not found")

    available = int(share_class.total_shares or 0) - int(share_class.outstanding_shares or 0)
    if security_in.shares > available:
        raise HTTPException(
            status_code=400,
            detail=f"Only {available} unissued shares remain in {share_class.name}",
        )

    security = crud.issue_security(db, stakeholder, share_class, security_in.shares, security_in.issue_date)
    logger.info("Issued %d %s shares to stakeholder %s", security.shares, share_class.name, stakeholder.id)
    return SecurityOut(
        id=security.id,
        share_class_id=share_class.id,
        share_class_name=share_class.name,
        class_type=share_class.class_type,
        shares=security.shares,
        issue_date=security.issue_date,
    )
