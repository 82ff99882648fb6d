"""
Tests for registration, login and the session gates.
"""
from app.core.config import settings
from app.core.security import create_session_token, decode_session_token
from app.models.user import User
from conftest import login, register


def session_header(value):
    return {"Cookie": f"{settings.SESSION_COOKIE_NAME}={value}"}


def test_register_redirects_to_login(client):
    """Test user registration."""
    response = register(client)
    assert response.status_code == 303
    assert response.headers["location"] == "/login"


def test_register_duplicate_username(client, database):
    """Second registration with the same username fails and leaves one record."""
    assert register(client).status_code == 303
    response = register(client, password="another-password")
    assert response.status_code == 409
    assert response.json()["error"] == "Username already exists"

    db = database.SessionLocal()
    try:
        assert db.query(User).filter(User.username == "alice").count() == 1
    finally:
        db.close()


def test_register_defaults(client, database):
    register(client, username="bob")
    db = database.SessionLocal()
    try:
        user = db.query(User).filter(User.username == "bob").first()
        assert user.display_name == "bob"
        assert user.role == "user"
        assert user.profile_picture == settings.DEFAULT_PROFILE_PICTURE
        assert user.password_hash != "secret123"
        assert user.password_hash.startswith("$2")
    finally:
        db.close()


def test_login_sets_session_cookie(client):
    """Test user login."""
    register(client)
    response = login(client)
    assert response.status_code == 303
    assert response.headers["location"] == "/dashboard"

    token = client.cookies.get(settings.SESSION_COOKIE_NAME)
    claims = decode_session_token(token)
    assert claims["username"] == "alice"
    assert claims["displayName"] == "alice"
    assert claims["role"] == "user"

    set_cookie = response.headers["set-cookie"].lower()
    assert "httponly" in set_cookie
    assert "samesite=strict" in set_cookie
    assert f"max-age={3 * 24 * 60 * 60}" in set_cookie


def test_login_trims_username_like_register(client):
    register(client, username="alice ")
    response = login(client, username="alice ")
    assert response.status_code == 303
    claims = decode_session_token(client.cookies.get(settings.SESSION_COOKIE_NAME))
    assert claims["username"] == "alice"


def test_login_wrong_password_never_sets_cookie(client):
    """Test login with invalid credentials."""
    register(client)
    response = login(client, password="wrong-password")
    assert response.status_code == 401
    assert response.text == "Invalid login credentials"
    assert settings.SESSION_COOKIE_NAME not in response.headers.get("set-cookie", "")
    assert client.cookies.get(settings.SESSION_COOKIE_NAME) is None


def test_login_unknown_user_same_response(client):
    register(client)
    wrong_password = login(client, password="wrong-password")
    unknown_user = login(client, username="nobody", password="wrong-password")
    assert unknown_user.status_code == wrong_password.status_code
    assert unknown_user.text == wrong_password.text


def test_protected_route_without_cookie(client):
    response = client.get("/my-images")
    assert response.status_code == 401
    assert response.text == "You are not login"
    assert response.headers["content-type"].startswith("text/plain")


def test_unsigned_cookie_is_rejected(client):
    """A forged JSON payload without a valid signature is not a session."""
    register(client)
    forged = '{"username": "alice", "displayName": "alice", "role": "user"}'
    assert client.get("/username", headers=session_header(forged)).status_code == 401


def test_dashboard_renders_for_default_role(logged_in):
    response = logged_in.get("/dashboard")
    assert response.status_code == 200
    assert "Welcome, alice" in response.text


def test_dashboard_refuses_other_roles(client):
    register(client)
    token = create_session_token({"username": "alice", "displayName": "alice", "role": "admin"})
    response = client.get("/dashboard", headers=session_header(token))
    assert response.status_code == 403
    assert response.text.startswith("Forbidden")


def test_dashboard_with_stale_cookie_redirects(client):
    token = create_session_token({"username": "ghost", "displayName": "ghost", "role": "user"})
    response = client.get("/dashboard", headers=session_header(token), follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/login"


def test_logout_clears_cookie(logged_in):
    response = logged_in.get("/logout", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/login"
    assert logged_in.cookies.get(settings.SESSION_COOKIE_NAME) is None


def test_username_endpoint(logged_in):
    response = logged_in.get("/username")
    assert response.status_code == 200
    assert response.json() == {"username": "alice"}


def test_login_and_register_pages(client):
    assert "<form" in client.get("/login").text
    assert "<form" in client.get("/register").text
    root = client.get("/", follow_redirects=False)
    assert root.headers["location"] == "/login"


def test_security_headers(client):
    response = client.get("/health")
    assert response.json() == {"status": "healthy"}
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "DENY"
