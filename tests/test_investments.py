import uuid
from decimal import Decimal

from capconnect.database.models import Company, Document, Notification


def test_commitment_raises_company_total_and_notifies(client, auth, db, founder, company, investor):
    resp = client.post(
        "/api/investments",
        json={"company_id": str(company.id), "amount": "50000", "instrument": "SAFE", "percentage": "1"},
        headers=auth(investor.id),
    )
    assert resp.status_code == 201
    body = resp.json()
    assert Decimal(body["initial_valuation"]) == Decimal("5000000")
    assert body["status"] == "committed"

    db.expire_all()
    assert db.get(Company, company.id).current_raised == Decimal("50000")
    notification = db.query(Notification).filter_by(user_id=founder.id).one()
    assert notification.message == "New investment commitment of $50,000 from an investor"
    assert notification.type == "commitment"
    assert notification.related_id == str(company.id)


def test_discussion_does_not_count_toward_raise(client, auth, db, founder, company, investor):
    client.post(
        "/api/investments",
        json={"company_id": str(company.id), "amount": "20000", "status": "in_discussion"},
        headers=auth(investor.id),
    )
    db.expire_all()
    assert db.get(Company, company.id).current_raised == Decimal("0")
    assert db.query(Notification).count() == 0


def test_invalid_amount_and_unknown_company(client, auth, company, investor):
    headers = auth(investor.id)
    assert client.post("/api/investments", json={"company_id": str(company.id), "amount": "0"}, headers=headers).status_code == 422
    unknown = client.post(
        "/api/investments",
        json={"company_id": "3f2b8c1d-9e4a-4b7c-8d2e-1a6f0b9c7e55", "amount": "10"},
        headers=headers,
    )
    assert unknown.status_code == 404


def test_portfolio(client, auth, db, company, investor):
    headers = auth(investor.id)
    created = client.post(
        "/api/investments",
        json={"company_id": str(company.id), "amount": "100000", "percentage": "2", "date": "2025-01-15"},
        headers=headers,
    ).json()
    client.post(
        "/api/investments",
        json={"company_id": str(company.id), "amount": "50000", "percentage": "1", "date": "2025-03-01"},
        headers=headers,
    )

    # the company re-prices after both commitments
    db.expire_all()
    db.get(Company, company.id).current_valuation = 10_000_000
    db.add(Document(
        company_id=company.id,
        investment_id=uuid.UUID(created["id"]),
        name="SAFE agreement",
        type="safe",
        url="https://files.example/documents/safe.pdf",
        storage_path="x/safe.pdf",
        uploaded_by=company.user_id,
    ))
    db.commit()

    resp = client.get("/api/investments", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert [p["date"] for p in body["investments"]] == ["2025-03-01", "2025-01-15"]

    older = body["investments"][1]
    assert older["company"]["name"] == "Acme Robotics"
    assert older["performance"] == 100
    assert Decimal(older["current_equity_value"]) == Decimal("200000")
    assert older["documents"] == 1

    summary = body["portfolio_summary"]
    assert Decimal(summary["total_invested"]) == Decimal("150000")
    assert Decimal(summary["total_current_value"]) == Decimal("300000")
    assert summary["overall_performance"] == 100


def test_founder_sees_recent_investors(client, auth, founder, company, investor, make_user):
    stealth = make_user("investor", is_stealth=True)
    for backer in (investor, stealth):
        client.post("/api/investments", json={"company_id": str(company.id), "amount": "1000"}, headers=auth(backer.id))

    rows = client.get("/api/companies/me/investments", headers=auth(founder.id)).json()
    assert [r["investor_name"] for r in rows] == ["An investor", "Ivan Investor"]
