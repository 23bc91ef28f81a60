import uuid
from types import SimpleNamespace

from capconnect.api import deps
from capconnect.api.routes import users as users_routes


def test_create_profile(client, auth):
    user_id = uuid.uuid4()
    resp = client.post(
        "/api/users/profile",
        json={"role": "investor", "full_name": "Sam Angel", "bio": "  ", "is_stealth": True},
        headers=auth(user_id),
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["id"] == str(user_id)
    assert body["role"] == "investor"
    assert body["bio"] is None
    assert body["is_stealth"] is True


def test_profile_for_auth_user_without_email(client, auth, monkeypatch):
    user_id = uuid.uuid4()
    monkeypatch.setattr(deps, "verify_token", lambda token: deps.AuthUser(id=uuid.UUID(token), email=None))

    resp = client.post(
        "/api/users/profile",
        json={"role": "investor", "full_name": "Phone Only"},
        headers=auth(user_id),
    )
    assert resp.status_code == 201
    assert resp.json()["email"] is None

    me = client.get("/api/users/me", headers=auth(user_id))
    assert me.status_code == 200
    assert client.get("/api/dashboard/investor", headers=auth(user_id)).status_code == 200


def test_founder_profile_is_never_stealth(client, auth):
    resp = client.post(
        "/api/users/profile",
        json={"role": "founder", "full_name": "Fay", "is_stealth": True},
        headers=auth(uuid.uuid4()),
    )
    assert resp.status_code == 201
    assert resp.json()["is_stealth"] is False


def test_second_profile_conflicts(client, auth, founder):
    resp = client.post(
        "/api/users/profile",
        json={"role": "founder", "full_name": "Again"},
        headers=auth(founder.id),
    )
    assert resp.status_code == 409


def test_me_requires_profile(client, auth):
    resp = client.get("/api/users/me", headers=auth(uuid.uuid4()))
    assert resp.status_code == 403
    assert resp.json()["detail"] == "profile_required"


def test_me_requires_token(client):
    assert client.get("/api/users/me").status_code == 401


def test_me(client, auth, founder):
    resp = client.get("/api/users/me", headers=auth(founder.id))
    assert resp.status_code == 200
    assert resp.json()["full_name"] == "Fiona Founder"


def _fake_supabase(user_id):
    def exchange_code_for_session(params):
        if params["auth_code"] != "good-code":
            raise ValueError("invalid code")
        return SimpleNamespace(user=SimpleNamespace(id=user_id))

    return SimpleNamespace(auth=SimpleNamespace(exchange_code_for_session=exchange_code_for_session))


def test_auth_callback_new_user_goes_to_role_select(client, monkeypatch):
    monkeypatch.setattr(users_routes, "get_supabase", lambda: _fake_supabase(uuid.uuid4()))
    resp = client.get("/auth/callback?code=good-code", follow_redirects=False)
    assert resp.status_code == 302
    assert resp.headers["location"].endswith("/auth/role-select")


def test_auth_callback_existing_user_goes_to_dashboard(client, monkeypatch, investor):
    monkeypatch.setattr(users_routes, "get_supabase", lambda: _fake_supabase(investor.id))
    resp = client.get("/auth/callback?code=good-code", follow_redirects=False)
    assert resp.headers["location"].endswith("/dashboard/investor")


def test_auth_callback_errors(client, monkeypatch):
    monkeypatch.setattr(users_routes, "get_supabase", lambda: _fake_supabase(uuid.uuid4()))
    missing = client.get("/auth/callback", follow_redirects=False)
    bad = client.get("/auth/callback?code=nope", follow_redirects=False)
    assert missing.headers["location"].endswith("/auth/auth-code-error")
    assert bad.headers["location"].endswith("/auth/auth-code-error")


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
