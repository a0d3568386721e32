# dealership/services/auth_service.py
"""
Authentication and authorization.

An Authenticator turns an incoming request into a Principal (who is acting,
with which role). The default ApiKeyAuthenticator resolves per-user API keys
sent as `X-API-Key: <key>` or `Authorization: Bearer <key>`. Swap the
`get_authenticator` dependency to plug in another scheme.

Roles map to permissions through a static table; routes declare what they
need with `Depends(require_permission(READ))` etc.
"""

import hashlib
import secrets
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from dealership.database import get_db
from dealership.exceptions import UnauthorizedError
from dealership.models.user import User
from dealership.utils.logger import get_logger

logger = get_logger(__name__)

READ = "READ"
WRITE = "WRITE"
DELETE = "DELETE"
MANAGE_USERS = "MANAGE_USERS"

PERMISSIONS = {
    "Admin": {READ, WRITE, DELETE, MANAGE_USERS},
    "Manager": {READ, WRITE, DELETE},
    "Clerk": {READ, WRITE},
}


@dataclass
class Principal:
    id: int
    name: str
    email: str
    role: str
    ip: Optional[str] = None
    user_agent: Optional[str] = None


def can_access(role: str, permission: str) -> bool:
    return permission in PERMISSIONS.get(role, set())


def hash_api_key(api_key: str) -> str:
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()


def generate_api_key() -> str:
    return f"dbo_{secrets.token_urlsafe(32)}"


def extract_api_key(request: Request) -> Optional[str]:
    key = request.headers.get("X-API-Key")
    if key:
        return key.strip()
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip() or None
    return None


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


class Authenticator:
    """Base authenticator. Subclasses return a Principal or raise UnauthorizedError."""

    def authenticate(self, request: Request) -> Principal:
        raise NotImplementedError


class ApiKeyAuthenticator(Authenticator):
    def __init__(self, db: Session):
        self.db = db

    def authenticate(self, request: Request) -> Principal:
        api_key = extract_api_key(request)
        if not api_key:
            raise UnauthorizedError("Authentication required")

        user = (
            self.db.query(User)
            .filter(User.api_key_hash == hash_api_key(api_key), User.is_active.is_(True))
            .first()
        )
        if user is None:
            logger.warning(f"[AUTH] Rejected API key from {_client_ip(request)}")
            raise UnauthorizedError("Invalid API key")

        return Principal(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            ip=_client_ip(request),
            user_agent=request.headers.get("User-Agent"),
        )


def get_authenticator(db: Session = Depends(get_db)) -> Authenticator:
    return ApiKeyAuthenticator(db)


def get_current_principal(request: Request,
                          authenticator: Authenticator = Depends(get_authenticator)) -> Principal:
    return authenticator.authenticate(request)


def require_permission(*permissions: str):
    """Dependency factory: the principal's role must grant every listed permission."""

    def checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        missing = [p for p in permissions if not can_access(principal.role, p)]
        if missing:
            logger.info(f"[AUTH] {principal.email} ({principal.role}) lacks {', '.join(missing)}")
            raise UnauthorizedError("Insufficient permissions", details={"required": missing})
        return principal

    return checker
