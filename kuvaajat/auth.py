"""Authentication utilities for the Kuvaajat backend.

Token issuance (Google sign-in) lives outside this service; here we only
verify bearer tokens and turn them into an :class:`Identity`. Services trust
the identity and never read caller ids from request bodies.
"""

from datetime import datetime, timedelta, timezone
from typing import Annotated, Any, Protocol

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .config import Settings
from .errors import AuthorizationError

# Bearer token scheme; missing header is reported by get_current_identity
security = HTTPBearer(auto_error=False)

CUSTOMER = "customer"
PHOTOGRAPHER = "photographer"
ROLES = (CUSTOMER, PHOTOGRAPHER)


class Identity:
    """Resolved caller: subject id, role and the raw token claims."""

    def __init__(self, subject_id: str, role: str, claims: dict[str, Any] | None = None):
        self.subject_id = subject_id
        self.role = role
        self.claims = claims or {}

    @property
    def is_customer(self) -> bool:
        return self.role == CUSTOMER

    @property
    def is_photographer(self) -> bool:
        return self.role == PHOTOGRAPHER

    def require_role(self, role: str, message: str | None = None) -> None:
        """Raise AuthorizationError unless the caller holds ``role``."""
        if self.role != role:
            raise AuthorizationError(message or f"Only {role}s can perform this action")

    def __repr__(self) -> str:
        return f"<Identity(subject_id='{self.subject_id}', role='{self.role}')>"


class IdentityResolver(Protocol):
    """Maps an inbound credential to an Identity."""

    def verify(self, credential: str) -> Identity:
        ...


class InvalidCredentialError(Exception):
    """Credential could not be verified."""


class JWTIdentityResolver:
    """Verifies HS256 JWTs issued by the sign-in service.

    The subject comes from ``sub`` (legacy tokens use ``uid``) and the role
    from ``userType`` (legacy) or ``role``.
    """

    def __init__(self, settings: Settings):
        self._secret = settings.jwt_secret_key
        self._algorithm = settings.jwt_algorithm

    def verify(self, credential: str) -> Identity:
        try:
            payload = jwt.decode(credential, self._secret, algorithms=[self._algorithm])
        except JWTError as e:
            raise InvalidCredentialError("Invalid or expired token") from e

        subject_id = payload.get("sub") or payload.get("uid")
        role = payload.get("userType") or payload.get("role")
        if not subject_id:
            raise InvalidCredentialError("Invalid token payload")
        if role not in ROLES:
            raise InvalidCredentialError("Token carries no valid role")
        return Identity(subject_id=subject_id, role=role, claims=payload)


def create_access_token(
    subject_id: str,
    role: str,
    settings: Settings,
    expires_delta: timedelta | None = None,
    **extra_claims: Any,
) -> str:
    """Create a JWT access token in the sign-in service's format."""
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)

    to_encode = {
        "sub": subject_id,
        "uid": subject_id,
        "userType": role,
        "exp": expire,
        "iat": datetime.now(timezone.utc),
        **extra_claims,
    }
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def get_identity_resolver(request: Request) -> IdentityResolver:
    """FastAPI dependency for the resolver built at app creation."""
    return request.app.state.identity_resolver


async def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    resolver: Annotated[IdentityResolver, Depends(get_identity_resolver)],
) -> Identity:
    """Resolve the caller from the Authorization header."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated - provide Authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return resolver.verify(credentials.credentials)
    except InvalidCredentialError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


# Type alias for dependency injection
CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
