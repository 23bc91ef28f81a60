import logging
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, status
from pydantic import UUID4
from sqlalchemy.orm import Session

from capconnect import demo, finance
from capconnect.api.deps import get_founder_company, investor_or_demo, require_founder, require_investor
from capconnect.api.schemas import (
    AvailableSPV,
    FounderSPV,
    FounderSPVList,
    FounderSPVStats,
    JoinSPVIn,
    SPVIn,
    SPVMemberOut,
    SPVOut,
)
from capconnect.database import crud
from capconnect.database.database import get_db
from capconnect.database.models import SPV, Company, SPVMember, User
from capconnect.notifications.notifier import format_amount, notify_user

logger = logging.getLogger(__name__)
router = APIRouter()


def founder_spv(spv: SPV) -> FounderSPV:
    members = [
        SPVMemberOut(
            id=m.id,
            investor_id=m.investor_id,
            full_name=crud.public_name(m.investor),
            email=(m.investor.email or "") if m.investor and not m.investor.is_stealth else "",
            amount_committed=m.amount_committed,
            status=m.status,
        )
        for m in spv.members
    ]
    return FounderSPV(
        **SPVOut.model_validate(spv).model_dump(),
        members=members,
        commitment_progress=finance.funding_progress(spv.committed_amount, spv.target_raise),
        total_members=len(members),
        committed_members=sum(1 for m in members if m.status == "committed"),
    )


def available_spv(spv: SPV) -> AvailableSPV:
    return AvailableSPV(
        id=spv.id,
        name=spv.name,
        target_amount=spv.target_raise,
        raised_amount=spv.committed_amount,
        status=spv.status,
        company_name=spv.company.name if spv.company else None,
        expiry_date=spv.expiry_date,
        days_left=finance.days_left(spv.expiry_date),
        min_investment=spv.minimum_investment,
        participants=sum(1 for m in spv.members if m.status != "withdrawn"),
        progress=finance.capped_progress(spv.committed_amount, spv.target_raise),
        description=spv.description,
    )


def _refresh_fill_status(spv: SPV) -> None:
    committed = finance.to_decimal(spv.committed_amount)
    target = finance.to_decimal(spv.target_raise)
    if spv.status == "open" and committed >= target:
        spv.status = "filled"
    elif spv.status == "filled" and committed < target:
        spv.status = "open"


# ──────────────────────────────────────────────────────────────────────────────
#  Founder side
# ──────────────────────────────────────────────────────────────────────────────
@router.post("/spvs", response_model=SPVOut, status_code=status.HTTP_201_CREATED)
def create_spv(
    spv_in: SPVIn,
    company: Company = Depends(get_founder_company),
    db: Session = Depends(get_db),
) -> SPVOut:
    spv = SPV(
        company_id=company.id,
        creator_id=company.user_id,
        status="open",
        committed_amount=Decimal("0"),
        **spv_in.model_dump(),
    )
    db.add(spv)
    db.commit()
    logger.info("Created SPV %s (%s) for company %s", spv.id, spv.name, company.id)
    return SPVOut.model_validate(spv)


@router.get("/spvs/mine", response_model=FounderSPVList)
def list_my_spvs(
    company: Company = Depends(get_founder_company),
    db: Session = Depends(get_db),
) -> FounderSPVList:
    spvs = [founder_spv(s) for s in crud.company_spvs(db, company.id)]
    stats = FounderSPVStats(
        active_spvs=sum(1 for s in spvs if s.status == "open"),
        total_committed=sum((finance.to_decimal(s.committed_amount) for s in spvs), Decimal("0")),
        total_members=sum(s.total_members for s in spvs),
    )
    return FounderSPVList(spvs=spvs, stats=stats)


@router.post("/spvs/{spv_id}/close", response_model=SPVOut)
def close_spv(
    spv_id: UUID4 = Path(...),
    user: User = Depends(require_founder),
    db: Session = Depends(get_db),
) -> SPVOut:
    spv = crud.get_spv(db, spv_id)
    if spv is None or spv.creator_id != user.id:
        raise HTTPException(status_code=404, detail="SPV not found")
    spv.status = "closed"
    db.commit()
    logger.info("SPV %s closed by %s", spv.id, user.id)
    return SPVOut.model_validate(spv)


# ──────────────────────────────────────────────────────────────────────────────
#  Investor side
# ──────────────────────────────────────────────────────────────────────────────
@router.get("/spvs/available", response_model=List[AvailableSPV])
def list_available_spvs(
    user: Optional[User] = Depends(investor_or_demo),
    db: Session = Depends(get_db),
):
    if user is None:
        return demo.available_spvs()
    return [available_spv(s) for s in crud.available_spvs(db, user.id)]


@router.post("/spvs/{spv_id}/join", response_model=FounderSPV)
def join_spv(
    join_in: JoinSPVIn,
    spv_id: UUID4 = Path(...),
    user: User = Depends(require_investor),
    db: Session = Depends(get_db),
) -> FounderSPV:
    spv = crud.get_spv(db, spv_id)
    if spv is None:
        raise HTTPException(status_code=404, detail="SPV not found")
    if spv.status != "open":
        raise HTTPException(status_code=409, detail="spv_unavailable")
    if join_in.amount < finance.to_decimal(spv.minimum_investment):
        raise HTTPException(
            status_code=400,
            detail=f"Minimum investment is ${format_amount(spv.minimum_investment)}",
        )

    member = crud.get_spv_member(db, spv.id, user.id)
    if member is not None and member.status != "withdrawn":
        raise HTTPException(status_code=409, detail="Already a member of this SPV")
    if member is None:
        member = SPVMember(spv_id=spv.id, investor_id=user.id)
        db.add(member)
        spv.members.append(member)
    member.amount_committed = join_in.amount
    member.status = "committed"

    spv.committed_amount = finance.to_decimal(spv.committed_amount) + join_in.amount
    _refresh_fill_status(spv)

    notify_user(
        db,
        spv.creator_id,
        f"{crud.public_name(user)} committed ${format_amount(join_in.amount)} to {spv.name}",
        type="commitment",
        related_id=spv.id,
    )
    db.commit()
    logger.info("Investor %s joined SPV %s with %s", user.id, spv.id, join_in.amount)
    return founder_spv(spv)


@router.post("/spvs/{spv_id}/withdraw", response_model=SPVOut)
def withdraw_from_spv(
    spv_id: UUID4 = Path(...),
    user: User = Depends(require_investor),
    db: Session = Depends(get_db),
) -> SPVOut:
    spv = crud.get_spv(db, spv_id)
    if spv is None:
        raise HTTPException(status_code=404, detail="SPV not found")
    if spv.status == "closed":
        raise HTTPException(status_code=409, detail="SPV is closed")
    member = crud.get_spv_member(db, spv.id, user.id)
    if member is None or member.status == "withdrawn":
        raise HTTPException(status_code=404, detail="Not a member of this SPV")

    if member.status == "committed":
        spv.committed_amount = max(
            Decimal("0"),
            finance.to_decimal(spv.committed_amount) - finance.to_decimal(member.amount_committed),
        )
    member.status = "withdrawn"
    member.amount_committed = Decimal("0")
    _refresh_fill_status(spv)
    db.commit()
    logger.info("Investor %s withdrew from SPV %s", user.id, spv.id)
    return SPVOut.model_validate(spv)
