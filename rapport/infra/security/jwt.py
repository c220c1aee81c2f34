"""Bearer token verification. Tokens are issued by the auth service."""
import logging
from typing import Any, Optional

from jose import JWTError, jwt

from rapport.settings import settings

logger = logging.getLogger(__name__)


def decode_token(token: str) -> Optional[dict[str, Any]]:
    """Decode and verify a JWT; None if it is invalid or expired."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as e:
        logger.debug("Rejected bearer token: %s", e)
        return None
