from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from ..config import JWT_ALGORITHM, JWT_AUDIENCE, SECRET_KEY

# Sessions are issued by the identity provider; this lifetime only applies to
# tokens minted locally (dev seeding, tests).
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24 * 7  # 7 days


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    if JWT_AUDIENCE and "aud" not in to_encode:
        to_encode["aud"] = JWT_AUDIENCE
    return jwt.encode(to_encode, SECRET_KEY, algorithm=JWT_ALGORITHM)


def create_session_token(
    user_id: str,
    *,
    email: str | None = None,
    role: str | None = None,
    full_name: str | None = None,
    **metadata,
) -> str:
    """Mint a token shaped like the identity provider's: role/name live in `user_metadata`."""
    user_metadata = {k: v for k, v in metadata.items() if v is not None}
    if role is not None:
        user_metadata["role"] = role
    if full_name is not None:
        user_metadata["full_name"] = full_name
    return create_access_token({"sub": str(user_id), "email": email, "user_metadata": user_metadata})


def decode_access_token(token: str) -> dict | None:
    """Verified claims, or None when the signature, expiry or audience check fails."""
    try:
        options = {"verify_aud": JWT_AUDIENCE is not None}
        return jwt.decode(
            token,
            SECRET_KEY,
            algorithms=[JWT_ALGORITHM],
            audience=JWT_AUDIENCE,
            options=options,
        )
    except JWTError:
        return None
