import logging
from typing import Optional
import httpx

from .config import Config

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"


class OAuthError(Exception):
    pass


def redirect_uri(config: Config) -> str:
    return config.API_URL.rstrip("/") + "/auth/oauth/google/callback"


def authorization_url(config: Config, state: str) -> str:
    params = {
        "client_id": config.GOOGLE_CLIENT_ID,
        "redirect_uri": redirect_uri(config),
        "response_type": "code",
        "scope": "openid email",
        "state": state,
        "prompt": "select_account",
    }
    return str(httpx.URL(AUTHORIZE_URL, params=params))


def fetch_email(config: Config, code: str, http: Optional[httpx.Client] = None) -> str:
    """Trade the authorization code for the account's verified email."""
    client = http or httpx.Client(timeout=15.0)
    try:
        r = client.post(TOKEN_URL, data={
            "code": code,
            "client_id": config.GOOGLE_CLIENT_ID,
            "client_secret": config.GOOGLE_CLIENT_SECRET,
            "redirect_uri": redirect_uri(config),
            "grant_type": "authorization_code",
        })
        if r.status_code != 200:
            raise OAuthError(f"Token exchange failed ({r.status_code})")
        access_token = r.json().get("access_token")
        if not access_token:
            raise OAuthError("Token exchange returned no access token")
        info = client.get(USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"})
        if info.status_code != 200:
            raise OAuthError(f"Userinfo request failed ({info.status_code})")
        data = info.json()
    except httpx.HTTPError as e:
        logger.error("Google OAuth error: %s", e)
        raise OAuthError("Could not reach Google") from e
    finally:
        if http is None:
            client.close()
    if not data.get("email") or not data.get("email_verified", False):
        raise OAuthError("Google account has no verified email")
    return data["email"]
