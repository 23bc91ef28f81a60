from decimal import Decimal

import pytest

from capconnect.database.models import AnalyticsView, Company, InvestorEngagement, Notification


COMPANY = {
    "name": "Orbital Labs",
    "industry": "space",
    "description": "Satellite servicing",
    "website": "",
    "target_raise": "1000000",
}


def test_create_company_defaults(client, auth, founder):
    resp = client.post("/api/companies", json=COMPANY, headers=auth(founder.id))
    assert resp.status_code == 201
    body = resp.json()
    assert body["stage"] == "pre-seed"
    assert body["country"] == "US"
    assert body["website"] is None
    assert Decimal(body["current_raised"]) == 0


def test_founder_has_a_single_company(client, auth, founder, company):
    resp = client.post("/api/companies", json=COMPANY, headers=auth(founder.id))
    assert resp.status_code == 409


def test_investor_cannot_create_company(client, auth, investor):
    assert client.post("/api/companies", json=COMPANY, headers=auth(investor.id)).status_code == 403


def test_my_company_without_profile(client, auth, founder):
    resp = client.get("/api/companies/me", headers=auth(founder.id))
    assert resp.status_code == 404
    assert resp.json()["detail"] == "company_required"


def test_update_my_company(client, auth, founder, company):
    resp = client.patch("/api/companies/me", json={"stage": "series-a"}, headers=auth(founder.id))
    assert resp.status_code == 200
    assert resp.json()["stage"] == "series-a"
    assert resp.json()["name"] == "Acme Robotics"


@pytest.mark.parametrize("field", ["name", "industry", "stage", "description", "country"])
def test_update_my_company_rejects_null_for_required_fields(client, auth, founder, company, field):
    resp = client.patch("/api/companies/me", json={field: None}, headers=auth(founder.id))
    assert resp.status_code == 422


def test_update_my_company_clears_optional_fields(client, auth, founder, company):
    resp = client.patch("/api/companies/me", json={"website": None, "target_raise": None}, headers=auth(founder.id))
    assert resp.status_code == 200
    assert resp.json()["website"] is None


def test_browse_filters_and_search(client, auth, make_user, make_company, investor):
    make_company(make_user("founder"), name="Ledger AI", industry="fintech", stage="seed",
                 description="Bookkeeping copilot")
    make_company(make_user("founder"), name="CareLoop", industry="healthtech", stage="series-a",
                 description="Remote patient monitoring")
    make_company(make_user("founder"), name="PayRail", industry="fintech", stage="series-a",
                 description="Cross-border AI payouts")
    headers = auth(investor.id)

    names = [c["name"] for c in client.get("/api/companies", headers=headers).json()]
    assert names == ["PayRail", "CareLoop", "Ledger AI"]

    fintech = client.get("/api/companies", params={"industry": "fintech", "stage": "all"}, headers=headers).json()
    assert {c["name"] for c in fintech} == {"Ledger AI", "PayRail"}

    searched = client.get("/api/companies", params={"search": "ai"}, headers=headers).json()
    assert {c["name"] for c in searched} == {"Ledger AI", "PayRail"}

    filters = client.get("/api/companies/filters", headers=headers).json()
    assert filters == {"industries": ["fintech", "healthtech"], "stages": ["seed", "series-a"]}


def test_company_detail_carries_progress_and_metrics(client, auth, db, founder, company, investor):
    company.current_raised = 125000
    db.commit()
    client.post(
        "/api/companies/me/metrics",
        json={"month": "2025-05-17", "mrr": "20000", "burn_rate": "40000", "cash_on_hand": "500000"},
        headers=auth(founder.id),
    )
    resp = client.get(f"/api/companies/{company.id}", headers=auth(investor.id))
    assert resp.status_code == 200
    body = resp.json()
    assert Decimal(body["funding_progress"]) == Decimal("25.00")
    assert body["founder_name"] == "Fiona Founder"
    assert body["latest_metrics"]["month"] == "2025-05-01"
    assert Decimal(body["latest_metrics"]["arr"]) == Decimal("240000")
    assert body["latest_metrics"]["runway_months"] == 12


def test_metrics_upsert_per_month(client, auth, founder, company):
    headers = auth(founder.id)
    client.post("/api/companies/me/metrics", json={"month": "2025-04-01", "mrr": "1000", "burn_rate": "5000"}, headers=headers)
    client.post("/api/companies/me/metrics", json={"month": "2025-05-01", "mrr": "1500", "burn_rate": "5000"}, headers=headers)
    client.post("/api/companies/me/metrics", json={"month": "2025-05-20", "mrr": "1800", "burn_rate": "5000"}, headers=headers)

    rows = client.get("/api/companies/me/metrics", headers=headers).json()
    assert [r["month"] for r in rows] == ["2025-05-01", "2025-04-01"]
    assert Decimal(rows[0]["mrr"]) == Decimal("1800")


def test_unknown_company_is_404(client, auth, investor):
    resp = client.get("/api/companies/8a1f6c1e-2f5b-4e7a-9a43-0c6f1d8c2b11", headers=auth(investor.id))
    assert resp.status_code == 404


def test_profile_view_counts_and_notifies(client, auth, db, founder, company, investor):
    for _ in range(2):
        resp = client.post(f"/api/companies/{company.id}/views", headers=auth(investor.id))
        assert resp.status_code == 204

    db.expire_all()
    assert db.query(AnalyticsView).filter_by(company_id=company.id).one().count == 2
    engagement = db.query(InvestorEngagement).filter_by(company_id=company.id).one()
    assert engagement.action_count == 2
    assert engagement.score == 8
    refreshed = db.get(Company, company.id)
    assert refreshed.engagement_score == 8
    assert refreshed.interaction_count == 2

    messages = [n.message for n in db.query(Notification).filter_by(user_id=founder.id)]
    assert messages == ["Ivan Investor viewed your company profile"] * 2


def test_stealth_investor_view_is_anonymous(client, auth, db, founder, company, make_user):
    stealth = make_user("investor", full_name="Secret Sam", is_stealth=True)
    client.post(f"/api/companies/{company.id}/views", headers=auth(stealth.id))
    db.expire_all()
    notification = db.query(Notification).filter_by(user_id=founder.id).one()
    assert notification.message == "An investor viewed your company profile"
