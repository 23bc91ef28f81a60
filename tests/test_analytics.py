import datetime
from decimal import Decimal

from capconnect.api.routes import analytics as analytics_routes
from capconnect.database.models import Document, Investment
from capconnect.storage import pdfgenerator


def _today():
    return datetime.date.today().isoformat()


def _document(db, company, name="Pitch Deck"):
    document = Document(
        company_id=company.id,
        name=name,
        type="pitch_deck",
        access_level="investors",
        url=f"https://files.example.com/{company.id}/deck.pdf",
        storage_path=f"{company.id}/deck.pdf",
        file_size=1024,
        version=1,
        uploaded_by=company.user_id,
    )
    db.add(document)
    db.commit()
    return document


def test_founder_analytics_after_activity(client, auth, db, founder, company, investor, make_user):
    document = _document(db, company)
    stealth = make_user("investor", is_stealth=True)

    client.post(f"/api/companies/{company.id}/views", headers=auth(investor.id))
    client.post(f"/api/companies/{company.id}/views", headers=auth(stealth.id))
    client.get(f"/api/documents/{document.id}/download", headers=auth(investor.id))

    body = client.get("/api/analytics/founder", headers=auth(founder.id)).json()
    assert body["investor_views"] == [{"date": _today(), "count": 2}]
    assert body["document_views"] == [{"date": _today(), "count": 1}]
    assert body["investor_engagement"] == [
        {"name": "Ivan Investor", "score": 8, "actions": 2},
        {"name": "An investor", "score": 4, "actions": 1},
    ]
    assert body["summary"] == {
        "total_views": 2,
        "total_document_views": 1,
        "average_score": 6,
        "total_actions": 3,
    }
    assert body["demo"] is False


def test_founder_without_company_gets_empty_analytics(client, auth, founder):
    body = client.get("/api/analytics/founder", headers=auth(founder.id)).json()
    assert body["investor_views"] == []
    assert body["investor_engagement"] == []
    assert body["summary"]["average_score"] == 0


def test_investor_analytics(client, auth, db, company, investor):
    document = _document(db, company)
    db.add(Investment(investor_id=investor.id, company_id=company.id, amount=Decimal("10000"),
                      instrument="SAFE", status="committed"))
    db.commit()

    client.post(f"/api/companies/{company.id}/views", headers=auth(investor.id))
    client.get(f"/api/documents/{document.id}/download", headers=auth(investor.id))

    body = client.get("/api/analytics/investor", headers=auth(investor.id)).json()
    assert body["profile_views"] == [{"date": _today(), "count": 1}]
    assert body["document_views"] == [{"date": _today(), "count": 1}]
    assert body["portfolio_engagement"] == [{"name": "Acme Robotics", "score": 8, "actions": 2}]
    assert body["summary"]["total_actions"] == 2


def test_export_returns_pdf(client, auth, db, founder, company, monkeypatch):
    captured = {}

    def fake_pdf(metrics, company_name, prepared_for):
        captured.update(metrics=metrics, company_name=company_name, prepared_for=prepared_for)
        return b"%PDF-1.7 fake"

    monkeypatch.setattr(analytics_routes, "generate_analytics_pdf", fake_pdf)
    resp = client.get("/api/analytics/founder/export", headers=auth(founder.id))

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.headers["content-disposition"] == 'attachment; filename="Acme_Robotics_analytics.pdf"'
    assert resp.content.startswith(b"%PDF")
    assert captured["company_name"] == "Acme Robotics"
    assert captured["prepared_for"] == "Fiona Founder"
    assert "summary" in captured["metrics"]


def test_export_is_founder_only(client, auth, investor):
    assert client.get("/api/analytics/founder/export", headers=auth(investor.id)).status_code == 403


def test_report_html_colours_scores():
    metrics = {
        "investor_views": [{"date": datetime.date(2025, 5, 5), "count": 3}],
        "document_views": [],
        "investor_engagement": [
            {"name": "High", "score": 92, "actions": 23},
            {"name": "Mid", "score": 64, "actions": 16},
            {"name": "Low", "score": 12, "actions": 3},
        ],
        "summary": {"total_views": 3, "total_document_views": 0, "average_score": 56, "total_actions": 42},
    }
    html = pdfgenerator.build_report_html(
        "Investor Analytics Report",
        pdfgenerator.build_analytics_sections(metrics),
        company_name="Acme Robotics",
        prepared_for="Fiona Founder",
        report_date=datetime.date(2025, 6, 1),
    )
    assert '<span class="score-high">92</span>' in html
    assert '<span class="score-mid">64</span>' in html
    assert '<span class="score-low">12</span>' in html
    assert "Jun 01, 2025" in html
    assert "No data recorded yet." in html
    assert '<table class="section-1">' in html


def test_report_html_escapes_names():
    metrics = {
        "investor_engagement": [{"name": "Fund <A> | Partners", "score": 88, "actions": 22}],
        "summary": {},
    }
    html = pdfgenerator.build_report_html(
        "Investor Analytics Report",
        pdfgenerator.build_analytics_sections(metrics),
        company_name="R&D <Labs>",
        prepared_for="Fiona Founder",
    )
    assert "<td>Fund &lt;A&gt; | Partners</td>" in html
    assert "<A>" not in html
    assert "R&amp;D &lt;Labs&gt;" in html
    assert '<span class="score-high">88</span>' in html


def test_demo_analytics(client):
    founder_body = client.get("/api/analytics/founder", params={"demo": "true"}).json()
    assert founder_body["demo"] is True
    assert founder_body["summary"]["total_views"] == 150
    assert founder_body["summary"]["average_score"] == 82

    investor_body = client.get("/api/analytics/investor", params={"demo": "true"}).json()
    assert investor_body["demo"] is True
    assert len(investor_body["profile_views"]) == 7
