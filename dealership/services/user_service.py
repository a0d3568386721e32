# dealership/services/user_service.py
"""
API users. The clear-text key is generated here, handed back once,
and only its sha256 hash is stored.
"""

from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dealership.exceptions import ConflictError, NotFoundError
from dealership.models.user import User
from dealership.services.activity_service import record_activity
from dealership.services.auth_service import Principal, generate_api_key, hash_api_key
from dealership.utils.logger import get_logger

logger = get_logger(__name__)


def list_users(db: Session) -> list:
    return db.query(User).order_by(User.created_at.asc()).all()


def create_user(db: Session, name: str, email: str, role: str = "Clerk", principal: Principal = None):
    """
    Returns (user, api_key). principal is None when bootstrapping the
    first admin from the command line; no activity row is written then.
    """
    api_key = generate_api_key()
    user = User(
        name=name,
        email=email.strip().lower(),
        role=role,
        api_key_hash=hash_api_key(api_key),
        is_active=True,
        created_at=datetime.utcnow(),
    )
    try:
        db.add(user)
        db.flush()
        if principal is not None:
            record_activity(db, principal, "CREATE", "User", user.id,
                            {"email": [None, user.email], "role": [None, user.role]})
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User with this email already exists", details={"field": "email"})
    db.refresh(user)
    logger.info(f"[USER] Created {user.email} role={user.role} (id={user.id})")
    return user, api_key


def deactivate_user(db: Session, user_id: int, principal: Principal) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.is_active:
        raise NotFoundError("User not found")
    user.is_active = False
    record_activity(db, principal, "DELETE", "User", user.id, {"is_active": [True, False]})
    db.commit()
    db.refresh(user)
    logger.info(f"[USER] Deactivated {user.email} (id={user.id})")
    return user
