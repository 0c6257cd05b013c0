"""Two-step cookie login against the portal.

1. GET /login: read the anti-forgery token from the hidden input and the
   first session cookie from Set-Cookie.
2. POST /login with the token, credentials and first cookie, redirects off.
3. Read the second session cookie (and the rotated first one) from the
   POST response.
"""

import logging
import re
from typing import List, Optional

from .downloader import PortalHttp, set_cookies
from .errors import AuthPageMalformed, AuthRejected
from .fragments import FragmentNotFound, cookie_value, extract_one
from .models import DEFAULT_USER_AGENT, Client, Credentials, Session, login_headers

logger = logging.getLogger("egov_scraper")

SESSION_ID_COOKIE = "_smarthr_session_id"
SESSION_X_KEY_COOKIE = "_smarthr_x_session_key"

TOKEN_START = '<input type="hidden" name="authenticity_token"'
TOKEN_END = "/>"
_VALUE_RE = re.compile(r'value="(.*?)"')


def find_cookie(cookies: List[str], name: str) -> Optional[str]:
    """Value of the named cookie among raw Set-Cookie headers."""
    for cookie in cookies:
        if cookie.strip().startswith(name + "="):
            return cookie_value(cookie)
    return None


def extract_token(html: str) -> str:
    try:
        tag = extract_one(html, TOKEN_START, TOKEN_END)
    except FragmentNotFound:
        raise AuthPageMalformed("authenticity_token input not found on login page")
    m = _VALUE_RE.search(tag)
    if not m:
        raise AuthPageMalformed("authenticity_token input has no value")
    return m.group(1)


def login_payload(token: str, credentials: Credentials) -> dict:
    # Field names are the portal's form contract.
    return {
        "authenticity_token": token,
        "utf8": "✓",
        "user[login]": credentials.login_id,
        "user[password]": credentials.password,
        "user[redirect_subdomain]": "",
        "user[redirect_path]": "",
    }


def login(http: PortalHttp, client: Client, credentials: Credentials,
          user_agent: str = DEFAULT_USER_AGENT) -> Session:
    login_url = client.login_url

    resp = http.get(login_url)
    token = extract_token(resp.text)

    cookies = set_cookies(resp)
    if not cookies:
        raise AuthPageMalformed("login page set no session cookie")
    session_id = find_cookie(cookies, SESSION_ID_COOKIE) or cookie_value(cookies[0])

    resp = http.post(
        login_url,
        data=login_payload(token, credentials),
        headers=login_headers(session_id, user_agent),
    )
    cookies = set_cookies(resp)
    session_x_key = find_cookie(cookies, SESSION_X_KEY_COOKIE)
    if not session_x_key:
        raise AuthRejected(
            f"login POST returned {resp.status_code} without {SESSION_X_KEY_COOKIE}"
        )
    session_id = find_cookie(cookies, SESSION_ID_COOKIE) or session_id

    logger.info(f"[{client.name}] Logged in to {client.base_url}")
    return Session(session_id=session_id, session_x_key=session_x_key,
                   base_url=client.base_url)
