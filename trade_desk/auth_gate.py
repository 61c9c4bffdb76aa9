"""
Route gating for the trade desk.

Decides, from the request path and the presence of a session token, whether a
page may be served or where the browser should be redirected instead.
"""

import logging
import re
from typing import Optional
from urllib.parse import urlencode

logger = logging.getLogger(__name__)

STORAGE_TOKEN_KEY = 'auth_token'

PUBLIC_PATHS = {'/', '/privacy-policy', '/terms-of-service'}
GUEST_ONLY_PATHS = {'/login', '/register', '/forgot-password'}
AUTH_API_PREFIX = '/api/auth'
HOME_PATH = '/trade'
LOGIN_PATH = '/login'

_UNGATED = re.compile(
    r'^/(_nicegui|static|public)(/|$)'
    r'|^/(favicon\.ico|robots\.txt|sitemap\.xml)$'
    r'|\.(png|jpe?g|gif|svg|webp)$'
)


def is_ungated(path: str) -> bool:
    """Framework internals and static assets are never gated"""
    return bool(_UNGATED.search(path))


def resolve_redirect(path: str, token: Optional[str]) -> Optional[str]:
    """Return the redirect target for `path`, or None when it may be served"""
    if is_ungated(path):
        return None

    is_auth_path = path.startswith(AUTH_API_PREFIX)
    is_public = path in PUBLIC_PATHS
    is_guest_only = path in GUEST_ONLY_PATHS

    if not token and not is_public and not is_guest_only and not is_auth_path:
        target = f"{LOGIN_PATH}?{urlencode({'redirect': path})}"
        logger.info(f"Unauthenticated request for {path}, redirecting to login")
        return target

    if token and is_guest_only:
        return HOME_PATH

    return None
