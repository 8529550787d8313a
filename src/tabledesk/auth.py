"""Users, the guest identity and the in-memory session store"""
import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Dict, Optional

from .errors import AuthError, ValidationError

if TYPE_CHECKING:
    from .registry import SourceRegistry

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class User:
    id: str
    email: str

    def to_dict(self) -> dict:
        return {'id': self.id, 'email': self.email}


GUEST = User(id='guest', email='guest')


@dataclass
class Session:
    id: str
    user: User
    created_at: datetime = field(default_factory=datetime.now)


class SessionStore:
    """
    Session id -> Session mapping for the life of the process.

    Nothing expires and nothing is persisted: a restart logs everyone out.
    """

    def __init__(self):
        self._sessions: Dict[str, Session] = {}

    def create(self, user: User) -> Session:
        session = Session(id=secrets.token_urlsafe(24), user=user)
        self._sessions[session.id] = session
        return session

    def get(self, session_id: Optional[str]) -> Optional[Session]:
        if not session_id:
            return None
        return self._sessions.get(session_id)

    def destroy(self, session_id: Optional[str]) -> bool:
        if not session_id:
            return False
        return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)


def check_credentials(email: Optional[str], password: Optional[str]) -> None:
    if not email or not password:
        raise ValidationError('Email and password required')


class AuthService:
    """Login, registration and session resolution on top of a source registry"""

    def __init__(self, registry: 'SourceRegistry', store: Optional[SessionStore] = None):
        self.registry = registry
        self.store = store if store is not None else SessionStore()

    def login(self, email: str, password: str) -> Session:
        check_credentials(email, password)
        user = self.registry.login(email, password)
        session = self.store.create(user)
        logger.info(f"Login: {user.email}")
        return session

    def register(self, email: str, password: str) -> str:
        check_credentials(email, password)
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return self.registry.register(email, password)

    def logout(self, session_id: Optional[str]) -> bool:
        return self.store.destroy(session_id)

    def resolve(self, session_id: Optional[str]) -> User:
        """User behind a session; the guest when no source requires auth."""
        if not self.registry.is_auth_required():
            return GUEST
        session = self.store.get(session_id)
        if session is None:
            raise AuthError('Unauthorized')
        return session.user
