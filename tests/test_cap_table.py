from decimal import Decimal

import pytest


@pytest.fixture
def headers(auth, founder, company):
    return auth(founder.id)


def _share_class(client, headers, **overrides):
    data = {"name": "Common", "class_type": "common", "total_shares": 10_000_000, "outstanding_shares": 0}
    data.update(overrides)
    resp = client.post("/api/cap-table/share-classes", json=data, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def _stakeholder(client, headers, name, stakeholder_type="founder"):
    resp = client.post(
        "/api/cap-table/stakeholders",
        json={"name": name, "email": "", "stakeholder_type": stakeholder_type},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_outstanding_cannot_exceed_total(client, headers):
    resp = client.post(
        "/api/cap-table/share-classes",
        json={"name": "Bad", "class_type": "common", "total_shares": 10, "outstanding_shares": 11},
        headers=headers,
    )
    assert resp.status_code == 422


def test_update_share_class_validates_against_stored_total(client, headers):
    sc = _share_class(client, headers, total_shares=100)
    resp = client.patch(f"/api/cap-table/share-classes/{sc['id']}", json={"outstanding_shares": 150}, headers=headers)
    assert resp.status_code == 422
    resp = client.patch(f"/api/cap-table/share-classes/{sc['id']}", json={"outstanding_shares": 60}, headers=headers)
    assert resp.json()["outstanding_shares"] == 60


@pytest.mark.parametrize("field", ["total_shares", "outstanding_shares", "name"])
def test_update_share_class_rejects_null(client, headers, field):
    sc = _share_class(client, headers, total_shares=100)
    resp = client.patch(f"/api/cap-table/share-classes/{sc['id']}", json={field: None}, headers=headers)
    assert resp.status_code == 422


def test_outstanding_cannot_drop_below_issued(client, headers):
    sc = _share_class(client, headers, total_shares=1000)
    holder = _stakeholder(client, headers, "Fiona Founder")
    client.post(
        "/api/cap-table/securities",
        json={"stakeholder_id": holder["id"], "share_class_id": sc["id"], "shares": 800},
        headers=headers,
    )

    resp = client.patch(f"/api/cap-table/share-classes/{sc['id']}", json={"outstanding_shares": 100}, headers=headers)
    assert resp.status_code == 422

    resp = client.patch(f"/api/cap-table/share-classes/{sc['id']}", json={"outstanding_shares": 900}, headers=headers)
    assert resp.status_code == 200

    holding = client.get("/api/cap-table", headers=headers).json()
    assert holding["share_classes"][0]["outstanding_shares"] == 900
    assert Decimal(holding["stakeholders"][0]["ownership"]) <= Decimal("100")


def test_issue_security_moves_shares_into_outstanding(client, headers):
    sc = _share_class(client, headers, total_shares=1000)
    holder = _stakeholder(client, headers, "Fiona Founder")

    resp = client.post(
        "/api/cap-table/securities",
        json={"stakeholder_id": holder["id"], "share_class_id": sc["id"], "shares": 600},
        headers=headers,
    )
    assert resp.status_code == 201
    assert resp.json()["share_class_name"] == "Common"

    over = client.post(
        "/api/cap-table/securities",
        json={"stakeholder_id": holder["id"], "share_class_id": sc["id"], "shares": 401},
        headers=headers,
    )
    assert over.status_code == 400

    classes = client.get("/api/cap-table/share-classes", headers=headers).json()
    assert classes[0]["outstanding_shares"] == 600


def test_cap_table_summary(client, headers):
    common = _share_class(client, headers, name="Common", total_shares=9_000_000)
    seed = _share_class(client, headers, name="Seed Preferred", class_type="preferred", total_shares=1_000_000)
    _share_class(client, headers, name="Option Pool", class_type="option_pool", total_shares=500_000)
    fiona = _stakeholder(client, headers, "Fiona Founder")
    fund = _stakeholder(client, headers, "Seed Fund", "investor")

    for holder, sc, shares in ((fiona, common, 2_000_000), (fund, seed, 1_000_000)):
        client.post(
            "/api/cap-table/securities",
            json={"stakeholder_id": holder["id"], "share_class_id": sc["id"], "shares": shares},
            headers=headers,
        )

    table = client.get("/api/cap-table", headers=headers).json()
    assert table["total_shares"] == 3_000_000
    percents = {row["name"]: Decimal(row["percent_of_total"]) for row in table["share_classes"]}
    assert percents == {"Common": Decimal("66.67"), "Seed Preferred": Decimal("33.33"), "Option Pool": Decimal("0")}

    ownership = {s["name"]: Decimal(s["ownership"]) for s in table["stakeholders"]}
    assert ownership == {"Fiona Founder": Decimal("66.67"), "Seed Fund": Decimal("33.33")}

    # empty classes are left out of the chart
    assert [(c["name"], c["color"]) for c in table["chart"]] == [("Common", "#3B82F6"), ("Seed Preferred", "#8B5CF6")]


def test_share_class_in_use_cannot_be_deleted(client, headers):
    sc = _share_class(client, headers, total_shares=100)
    unused = _share_class(client, headers, name="Unused", total_shares=100)
    holder = _stakeholder(client, headers, "Fiona Founder")
    client.post(
        "/api/cap-table/securities",
        json={"stakeholder_id": holder["id"], "share_class_id": sc["id"], "shares": 10},
        headers=headers,
    )
    assert client.delete(f"/api/cap-table/share-classes/{sc['id']}", headers=headers).status_code == 409
    assert client.delete(f"/api/cap-table/share-classes/{unused['id']}", headers=headers).status_code == 204


def test_other_companies_share_classes_are_hidden(client, auth, headers, make_user, make_company):
    sc = _share_class(client, headers)
    other = make_user("founder")
    make_company(other, name="Other Co")
    resp = client.patch(f"/api/cap-table/share-classes/{sc['id']}", json={"name": "Mine"}, headers=auth(other.id))
    assert resp.status_code == 404
