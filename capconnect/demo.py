"""
Fixed sample payloads served for `?demo=true` requests.

Every builder returns a plain dict shaped like the real response model of
the endpoint that serves it, so demo and live responses validate the same
way. Nothing here touches the database or Supabase.
"""

import datetime
import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional

from capconnect import finance
from capconnect.formatting import format_time_ago, unread_badge


def demo_id(n: int) -> uuid.UUID:
    """Stable version-4 shaped ids so demo rows validate like real ones."""
    return uuid.UUID(f"00000000-0000-4000-8000-{n:012d}")


def demo_user(role: str) -> Dict[str, Any]:
    return {
        "id": demo_id(1 if role == "founder" else 2),
        "email": f"demo-{role}@capconnect.app",
        "role": role,
        "full_name": f"Demo {role.title()}",
        "is_stealth": False,
        "is_verified": True,
    }


# ──────────────────────────────────────────────────────────────────────────────
#  Dashboards
# ──────────────────────────────────────────────────────────────────────────────
def founder_dashboard() -> Dict[str, Any]:
    user = demo_user("founder")
    company = {
        "id": demo_id(100),
        "user_id": user["id"],
        "name": "Demo Startup Inc.",
        "industry": "fintech",
        "stage": "seed",
        "description": "A revolutionary fintech startup",
        "target_raise": Decimal("500000"),
        "current_raised": Decimal("150000"),
    }
    return {
        "user": user,
        "company": company,
        "funding_progress": finance.funding_progress(company["current_raised"], company["target_raise"]),
        "latest_metrics": {
            "mrr": Decimal("15000"),
            "burn_rate": Decimal("25000"),
            "runway_months": 12,
            "cac": Decimal("150"),
        },
        "recent_investments": [
            {
                "id": demo_id(201),
                "amount": Decimal("50000"),
                "instrument": "SAFE",
                "status": "committed",
                "investor_name": "Demo Investor 1",
            },
            {
                "id": demo_id(202),
                "amount": Decimal("100000"),
                "instrument": "Convertible Note",
                "status": "in_discussion",
                "investor_name": "Demo Investor 2",
            },
        ],
        "document_count": 5,
        "demo": True,
    }


def investor_dashboard() -> Dict[str, Any]:
    investments = [
        {
            "id": demo_id(301),
            "amount": Decimal("25000"),
            "instrument": "SAFE",
            "status": "committed",
            "company": {"name": "Demo Startup A", "stage": "seed", "industry": "fintech"},
        },
        {
            "id": demo_id(302),
            "amount": Decimal("50000"),
            "instrument": "Equity",
            "status": "committed",
            "company": {"name": "Demo Startup B", "stage": "series-a", "industry": "healthtech"},
        },
    ]
    return {
        "user": demo_user("investor"),
        "recent_investments": investments,
        "total_invested": sum((i["amount"] for i in investments), Decimal("0")),
        "active_investments": len(investments),
        "spv_memberships": [
            {"id": demo_id(401), "spv_name": "Fintech SPV", "company_name": "Demo Startup A"},
        ],
        "recent_companies": [
            {
                "id": demo_id(501),
                "name": "Demo Company 1",
                "industry": "fintech",
                "stage": "seed",
                "description": "Revolutionary fintech platform",
                "target_raise": Decimal("500000"),
            },
            {
                "id": demo_id(502),
                "name": "Demo Company 2",
                "industry": "healthtech",
                "stage": "series-a",
                "description": "AI-powered healthcare solution",
                "target_raise": Decimal("2000000"),
            },
        ],
        "demo": True,
    }


# ──────────────────────────────────────────────────────────────────────────────
#  Analytics
# ──────────────────────────────────────────────────────────────────────────────
def _series(counts: List[int]) -> List[Dict[str, Any]]:
    start = datetime.date(2025, 5, 5)
    return [
        {"date": start + datetime.timedelta(days=offset), "count": count}
        for offset, count in enumerate(counts)
    ]


def _engagement(rows) -> List[Dict[str, Any]]:
    return [{"name": name, "score": score, "actions": actions} for name, score, actions in rows]


def founder_analytics() -> Dict[str, Any]:
    views = _series([12, 18, 15, 22, 30, 25, 28])
    document_views = _series([8, 12, 9, 15, 18, 14, 16])
    engagement = _engagement([
        ("John Doe", 92, 27),
        ("Michael Brown", 89, 22),
        ("Jane Smith", 85, 19),
        ("Robert Johnson", 78, 14),
        ("Emily Wilson", 65, 8),
    ])
    return {
        "investor_views": views,
        "document_views": document_views,
        "investor_engagement": engagement,
        "summary": finance.analytics_summary(views, document_views, engagement),
        "demo": True,
    }


def investor_analytics() -> Dict[str, Any]:
    views = _series([3, 5, 4, 8, 7, 6, 9])
    document_views = _series([2, 4, 3, 6, 5, 4, 7])
    engagement = _engagement([
        ("CloudTech Solutions", 92, 27),
        ("AgriTech Innovations", 89, 22),
        ("EcoGen Power", 85, 19),
        ("MediSync", 78, 14),
        ("DataViz AI", 65, 8),
    ])
    return {
        "profile_views": views,
        "document_views": document_views,
        "portfolio_engagement": engagement,
        "summary": finance.analytics_summary(views, document_views, engagement),
        "demo": True,
    }


# ──────────────────────────────────────────────────────────────────────────────
#  Deal room, SPVs, notifications
# ──────────────────────────────────────────────────────────────────────────────
def deal_room(viewer_role: str = "founder") -> Dict[str, Any]:
    base = datetime.datetime(2025, 6, 10, 14, 30, 0)
    rows = [
        ("John Investor", "investor", "I reviewed your pitch deck. Very impressed with your traction!", 0, True),
        ("Jane Smith", "founder", "Thank you! We're growing 20% month over month. Happy to share more metrics.", 5, True),
        ("John Investor", "investor", "Great! Could you clarify your customer acquisition costs?", 10, False),
    ]
    messages = [
        {
            "id": demo_id(600 + index),
            "sender_id": None,
            "sender_name": name,
            "sender_role": role,
            "content": content,
            "created_at": base + datetime.timedelta(minutes=minutes),
            "read": read,
        }
        for index, (name, role, content, minutes, read) in enumerate(rows, start=1)
    ]
    return {
        "founder_id": demo_id(1),
        "messages": messages,
        "unread_count": sum(1 for m in messages if not m["read"] and m["sender_role"] != viewer_role),
        "demo": True,
    }


def available_spvs(today: Optional[datetime.date] = None) -> List[Dict[str, Any]]:
    rows = [
        (
            "Cloud SaaS Ventures SPV", 750000, 320000, "open", "CloudTech Solutions",
            datetime.date(2025, 8, 15), 15000, 5,
            "SPV for CloudTech Solutions, an emerging SaaS platform specializing in enterprise "
            "automation solutions with current MRR of $45K and 22% YoY growth.",
        ),
        (
            "Green Energy Fund", 1200000, 1200000, "filled", "EcoGen Power",
            datetime.date(2025, 7, 20), 50000, 15,
            "Successfully funded SPV for EcoGen Power's Series B round. The company has developed "
            "patented renewable energy storage solutions with contracts signed with two Fortune 500 companies.",
        ),
        (
            "HealthTech Innovations SPV", 500000, 425000, "open", "MediSync",
            datetime.date(2025, 9, 30), 25000, 9,
            "SPV for MediSync, a healthcare AI startup focused on predictive diagnostics. FDA approval "
            "expected in Q3 2025 with 3 major hospital partnerships already secured.",
        ),
    ]
    spvs = []
    for index, (name, target, raised, status, company, expiry, minimum, participants, description) in enumerate(rows, start=1):
        spvs.append({
            "id": demo_id(700 + index),
            "name": name,
            "target_amount": Decimal(target),
            "raised_amount": Decimal(raised),
            "status": status,
            "company_name": company,
            "expiry_date": expiry,
            "days_left": finance.days_left(expiry, today),
            "min_investment": Decimal(minimum),
            "participants": participants,
            "progress": finance.capped_progress(raised, target),
            "description": description,
        })
    return spvs


def notification_feed(now: Optional[datetime.datetime] = None) -> Dict[str, Any]:
    now = now or datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)
    rows = [
        ("demo-1", "Demo Investor viewed your company profile", "view", False, datetime.timedelta(minutes=30)),
        ("demo-2", "New investment commitment of $50,000", "commitment", False, datetime.timedelta(hours=2)),
        ("demo-3", "Compliance documents require review", "compliance", True, datetime.timedelta(days=1)),
    ]
    notifications = [
        {
            "id": notification_id,
            "message": message,
            "type": type,
            "is_read": is_read,
            "created_at": now - age,
            "related_id": None,
            "time_ago": format_time_ago(now - age, now),
        }
        for notification_id, message, type, is_read, age in rows
    ]
    unread = sum(1 for n in notifications if not n["is_read"])
    return {
        "notifications": notifications,
        "unread_count": unread,
        "badge": unread_badge(unread),
        "demo": True,
    }
