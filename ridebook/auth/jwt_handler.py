from datetime import datetime, timedelta, timezone

import jwt

from ridebook.core import config

def create_access_token(
    subject: str,
    session_id: str,
    email: str,
    expires_minutes: int | None = None,
) -> tuple[str, int]:
    """Return the encoded token and its expiry as epoch seconds."""
    expire_minutes = expires_minutes or config.JWT_EXPIRES_MINUTES
    issued_at = datetime.now(timezone.utc)
    expire = issued_at + timedelta(minutes=expire_minutes)
    payload = {"sub": subject, "sid": session_id, "email": email, "exp": expire, "iat": issued_at}
    token = jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)
    return token, int(expire.timestamp())


def decode_access_token(token: str, verify_exp: bool = True) -> dict:
    return jwt.decode(
        token,
        config.JWT_SECRET_KEY,
        algorithms=[config.JWT_ALGORITHM],
        options={"verify_exp": verify_exp, "require": ["sub", "sid", "exp"]},
    )
