"""GitHub OAuth web-flow code exchange."""

from __future__ import annotations

import httpx
import structlog

from code_evolution.config import GitHubSettings
from code_evolution.exceptions import OAuthError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def exchange_code(
    code: str,
    settings: GitHubSettings,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Exchange an authorization ``code`` for an access token.

    Args:
        code: The ``code`` query parameter GitHub redirected back with.
        settings: GitHub settings carrying the OAuth app credentials.
        client: Optional ``httpx.AsyncClient`` (injected in tests).

    Returns:
        The access token.

    Raises:
        OAuthError: If the app is not configured, GitHub rejects the code,
            or the reply carries no token.
    """
    if not code:
        raise OAuthError("Authorization code is required")
    if not settings.client_id or settings.client_secret is None:
        raise OAuthError("GitHub OAuth is not configured")

    body = {
        "client_id": settings.client_id,
        "client_secret": settings.client_secret.get_secret_value(),
        "code": code,
    }
    headers = {"Accept": "application/json"}

    try:
        if client is not None:
            response = await client.post(settings.oauth_url, json=body, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=float(settings.timeout)) as owned:
                response = await owned.post(settings.oauth_url, json=body, headers=headers)
    except httpx.HTTPError as exc:
        raise OAuthError(f"Failed to exchange code for token: {exc}") from exc

    if response.status_code >= 400:
        raise OAuthError(f"Failed to exchange code for token: HTTP {response.status_code}")

    payload = response.json()
    if payload.get("error"):
        logger.warning("oauth_exchange_rejected", error=payload.get("error"))
        raise OAuthError(str(payload.get("error_description") or payload["error"]))

    token = payload.get("access_token")
    if not token:
        raise OAuthError("No access token received from GitHub")

    logger.info("oauth_exchange_succeeded", scope=payload.get("scope", ""))
    return str(token)
