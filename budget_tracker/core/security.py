"""
Token helpers.

Access tokens are HS256 JWTs whose subject is the user id. Password handling
is not part of this service; tokens are issued by scripts/issue_token.py.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

from jose import JWTError, jwt

from budget_tracker.core.config import Settings, settings as default_settings


def create_access_token(
    subject: Union[str, Any],
    expires_delta: Optional[timedelta] = None,
    config: Optional[Settings] = None,
) -> str:
    config = config or default_settings
    if expires_delta is None:
        expires_delta = timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {"exp": expire, "sub": str(subject)}
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)


def decode_access_token(token: str, config: Optional[Settings] = None) -> Optional[str]:
    """Return the token subject, or None when the token is invalid or expired."""
    config = config or default_settings
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except JWTError:
        return None
    return payload.get("sub")
