"""FastAPI authentication dependencies."""

from __future__ import annotations

from dataclasses import dataclass

import jwt
import structlog
from fastapi import HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from aiquest.auth.jwt import verify_token
from aiquest.config import get_settings

logger = structlog.get_logger()

_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """A verified learner identity."""

    user_id: str
    email: str | None = None


async def get_current_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> Identity:
    """
    Resolve the learner from a bearer token, falling back to the session cookie.

    The learner id always comes from the verified token, never from request
    input. Raises 401 when no valid token is presented.
    """
    token = credentials.credentials if credentials else request.cookies.get(get_settings().session_cookie_name)
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized")

    try:
        payload = verify_token(token)
    except jwt.InvalidTokenError as e:
        logger.info("token_rejected", reason=str(e))
        raise HTTPException(status_code=401, detail="Unauthorized") from e

    return Identity(user_id=str(payload["sub"]), email=payload.get("email"))
