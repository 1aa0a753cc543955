from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .error_handlers import UnauthorizedError, get_error_message
from .jwt import decode_access_token

if TYPE_CHECKING:
    from .roles import Role

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Caller:
    """Explicit request context handed to every workflow function."""
    caller_id: str
    email: str | None = None
    raw_role: str | None = None
    full_name: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def role(self) -> "Role | None":
        from .roles import Role

        return Role.parse(self.raw_role)


def caller_from_claims(claims: dict) -> Caller:
    metadata = claims.get("user_metadata") or {}
    if not isinstance(metadata, dict):
        metadata = {}
    return Caller(
        caller_id=str(claims["sub"]),
        email=claims.get("email"),
        raw_role=metadata.get("role"),
        full_name=metadata.get("full_name") or metadata.get("name"),
        metadata=metadata,
    )


def get_current_caller(credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)) -> Caller:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError(get_error_message("unauthenticated"))

    claims = decode_access_token(credentials.credentials)
    if not claims or not claims.get("sub"):
        raise UnauthorizedError(get_error_message("invalid_token"))

    return caller_from_claims(claims)
