import logging
import secrets
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status

from ...core.config import Settings, get_settings

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    return authorization[len(BEARER_PREFIX):]


def is_valid_token(token: Optional[str], secret: str) -> bool:
    if token is None:
        return False
    return secrets.compare_digest(token.encode("utf-8"), secret.encode("utf-8"))


async def require_api_secret(
    settings: Annotated[Settings, Depends(get_settings)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> None:
    """Reject the request with 401 unless it carries ``Bearer <API_SECRET>``."""
    token = extract_bearer_token(authorization)
    if not is_valid_token(token, settings.api_secret):
        logger.warning("Rejected request with %s bearer token.", "missing" if token is None else "invalid")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
