from decimal import Decimal

import pytest

from capconnect.database.models import Notification


@pytest.fixture
def spv(client, auth, founder, company):
    resp = client.post(
        "/api/spvs",
        json={"name": "Acme Seed SPV", "target_raise": "100000", "minimum_investment": "10000"},
        headers=auth(founder.id),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def _join(client, auth, spv, user, amount):
    return client.post(f"/api/spvs/{spv['id']}/join", json={"amount": amount}, headers=auth(user.id))


def test_create_defaults(client, auth, founder, company):
    resp = client.post("/api/spvs", json={"name": "Quick SPV", "target_raise": "50000"}, headers=auth(founder.id))
    body = resp.json()
    assert body["status"] == "open"
    assert Decimal(body["minimum_investment"]) == Decimal("1000")
    assert Decimal(body["committed_amount"]) == 0


def test_join_commits_and_notifies_creator(client, auth, db, founder, spv, investor):
    resp = _join(client, auth, spv, investor, "25000")
    assert resp.status_code == 200
    body = resp.json()
    assert Decimal(body["committed_amount"]) == Decimal("25000")
    assert Decimal(body["commitment_progress"]) == Decimal("25.00")
    assert body["members"][0]["status"] == "committed"

    db.expire_all()
    notification = db.query(Notification).filter_by(user_id=founder.id).one()
    assert notification.type == "commitment"
    assert notification.message == "Ivan Investor committed $25,000 to Acme Seed SPV"


def test_join_rejections(client, auth, spv, investor):
    assert _join(client, auth, spv, investor, "5000").status_code == 400
    assert _join(client, auth, spv, investor, "10000").status_code == 200
    again = _join(client, auth, spv, investor, "10000")
    assert again.status_code == 409


def test_reaching_target_fills_and_withdrawal_reopens(client, auth, spv, investor, make_user):
    other = make_user("investor")
    _join(client, auth, spv, investor, "60000")
    filled = _join(client, auth, spv, other, "40000").json()
    assert filled["status"] == "filled"

    late = make_user("investor")
    resp = _join(client, auth, spv, late, "10000")
    assert resp.status_code == 409
    assert resp.json()["detail"] == "spv_unavailable"

    reopened = client.post(f"/api/spvs/{spv['id']}/withdraw", headers=auth(other.id)).json()
    assert reopened["status"] == "open"
    assert Decimal(reopened["committed_amount"]) == Decimal("60000")


def test_withdrawn_member_can_rejoin(client, auth, spv, investor):
    _join(client, auth, spv, investor, "20000")
    client.post(f"/api/spvs/{spv['id']}/withdraw", headers=auth(investor.id))
    rejoined = _join(client, auth, spv, investor, "30000")
    assert rejoined.status_code == 200
    assert Decimal(rejoined.json()["committed_amount"]) == Decimal("30000")
    assert rejoined.json()["total_members"] == 1


def test_available_excludes_joined_and_closed(client, auth, founder, company, spv, investor):
    headers = auth(investor.id)
    listed = client.get("/api/spvs/available", headers=headers).json()
    assert [s["name"] for s in listed] == ["Acme Seed SPV"]
    assert listed[0]["company_name"] == "Acme Robotics"
    assert listed[0]["progress"] == 0

    _join(client, auth, spv, investor, "10000")
    assert client.get("/api/spvs/available", headers=headers).json() == []

    client.post(f"/api/spvs/{spv['id']}/withdraw", headers=headers)
    assert len(client.get("/api/spvs/available", headers=headers).json()) == 1

    client.post(f"/api/spvs/{spv['id']}/close", headers=auth(founder.id))
    assert client.get("/api/spvs/available", headers=headers).json() == []


def test_only_creator_can_close(client, auth, spv, make_user, make_company):
    other = make_user("founder")
    make_company(other, name="Other Co")
    assert client.post(f"/api/spvs/{spv['id']}/close", headers=auth(other.id)).status_code == 404


def test_founder_listing_stats(client, auth, founder, spv, investor, make_user):
    _join(client, auth, spv, investor, "15000")
    _join(client, auth, spv, make_user("investor", is_stealth=True), "20000")

    body = client.get("/api/spvs/mine", headers=auth(founder.id)).json()
    assert body["stats"]["active_spvs"] == 1
    assert Decimal(body["stats"]["total_committed"]) == Decimal("35000")
    assert body["stats"]["total_members"] == 2
    names = {m["full_name"] for m in body["spvs"][0]["members"]}
    assert names == {"Ivan Investor", "An investor"}


def test_available_demo_needs_no_auth(client):
    resp = client.get("/api/spvs/available", params={"demo": "true"})
    assert resp.status_code == 200
    spvs = resp.json()
    assert [s["status"] for s in spvs] == ["open", "filled", "open"]
    assert spvs[1]["progress"] == 100
