"""FastAPI authentication dependency."""
import hmac
import logging
from typing import Dict, Optional

from fastapi import Request

from config import settings
from core.domain import Principal
from core.errors import AuthenticationError

logger = logging.getLogger(settings.LOGGER_NAME)


def parse_api_tokens(entries) -> Dict[str, str]:
    """Map token -> principal name from "name:token" entries."""
    tokens: Dict[str, str] = {}
    for entry in entries or []:
        name, sep, token = str(entry).partition(":")
        if not sep or not name.strip() or not token.strip():
            logger.warning("Ignoring malformed API_TOKENS entry (expected name:token)")
            continue
        tokens[token.strip()] = name.strip()
    return tokens


def _provided_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, credentials = auth_header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    api_key = request.headers.get("X-API-Key")
    return api_key.strip() if api_key else None


async def verify_access_token(request: Request) -> Principal:
    """Attribute the request to a known principal.

    Raises:
        AuthenticationError: If the token is missing or unknown (401).
    """
    if not settings.REQUIRE_AUTHENTICATION:
        return Principal(name=settings.GUEST_PRINCIPAL)

    provided = _provided_token(request)
    if not provided:
        raise AuthenticationError("Access token required")

    for token, name in parse_api_tokens(settings.API_TOKENS).items():
        if hmac.compare_digest(token, provided):
            return Principal(name=name)

    logger.warning(f"Rejected request to {request.url.path}: unknown access token")
    raise AuthenticationError()
