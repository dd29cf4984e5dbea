import logging
from typing import Optional
from sqlmodel import select

from .gateway import SqlGateway
from .models import User
from .auth import hash_password

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(gateway: SqlGateway, email: str) -> Optional[User]:
    with gateway.session() as s:
        return s.exec(select(User).where(User.email == normalize_email(email))).first()


def get_user(gateway: SqlGateway, user_id: str) -> Optional[User]:
    with gateway.session() as s:
        return s.get(User, user_id)


def create_user(gateway: SqlGateway, email: str, password: Optional[str] = None) -> User:
    """Create an account; magic-link and OAuth accounts have no password."""
    with gateway.session() as s:
        u = User(email=normalize_email(email), password_hash=hash_password(password) if password else None)
        s.add(u); s.commit(); s.refresh(u)
    logger.info("Account created: %s", u.email)
    return u


def get_or_create_user(gateway: SqlGateway, email: str) -> User:
    return get_user_by_email(gateway, email) or create_user(gateway, email)


def set_password(gateway: SqlGateway, user_id: str, password: str) -> Optional[User]:
    with gateway.session() as s:
        u = s.get(User, user_id)
        if not u:
            return None
        u.password_hash = hash_password(password)
        s.add(u); s.commit(); s.refresh(u)
        return u
