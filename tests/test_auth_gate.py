import pytest

from trade_desk.auth_gate import HOME_PATH, is_ungated, resolve_redirect


@pytest.mark.parametrize("path", [
    "/_nicegui/client/abc",
    "/static/app.css",
    "/favicon.ico",
    "/images/logo.png",
])
def test_assets_never_gated(path):
    assert is_ungated(path)
    assert resolve_redirect(path, None) is None


def test_protected_page_without_token_redirects_to_login():
    assert resolve_redirect("/trade", None) == "/login?redirect=%2Ftrade"


@pytest.mark.parametrize("path", ["/", "/login", "/register", "/api/auth/login"])
def test_public_pages_served_without_token(path):
    assert resolve_redirect(path, None) is None


def test_logged_in_user_sent_home_from_login():
    assert resolve_redirect("/login", "token") == HOME_PATH
    assert resolve_redirect("/forgot-password", "token") == HOME_PATH


def test_logged_in_user_served_protected_and_public_pages():
    assert resolve_redirect("/trade", "token") is None
    assert resolve_redirect("/", "token") is None
