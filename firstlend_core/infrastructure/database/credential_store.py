"""Durable client-side holder for the current session

The store is the one place that answers "is a user logged in". Every
mutation is committed before the call returns, and subscribers are told
about the new session (or None) right after.
"""

import json
import logging
from typing import Callable, List, Optional
from sqlalchemy.engine import Engine
from firstlend_core.config import settings
from firstlend_core.domain.models import Session, UserProfile
from firstlend_core.domain.exceptions import CredentialStoreError
from firstlend_core.infrastructure.database.models import ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, USER_KEY, SESSION_KEYS
from firstlend_core.infrastructure.database.repositories import CredentialRepository
from firstlend_core.infrastructure.database.session import create_storage_engine, create_session_factory, session_scope

SessionListener = Callable[[Optional[Session]], None]


class CredentialStore:
    """Session persistence with read + subscribe access"""

    def __init__(self, database_url: str | None = None, engine: Engine | None = None):
        self.engine = engine or create_storage_engine(database_url or settings.credential_store_url)
        self._session_factory = create_session_factory(self.engine)
        self._listeners: List[SessionListener] = []

    # Mutations

    def save(self, session: Session) -> None:
        """Persist a freshly issued session, replacing any previous one"""
        with session_scope(self._session_factory) as db:
            repo = CredentialRepository(db)
            repo.put(ACCESS_TOKEN_KEY, session.access_token)
            if session.refresh_token:
                repo.put(REFRESH_TOKEN_KEY, session.refresh_token)
            else:
                repo.delete([REFRESH_TOKEN_KEY])
            repo.put(USER_KEY, json.dumps(session.user.to_dict()))
        self._notify()

    def update_tokens(self, access_token: str, refresh_token: str | None) -> None:
        """Replace the token pair after a refresh; the profile is untouched"""
        with session_scope(self._session_factory) as db:
            repo = CredentialRepository(db)
            repo.put(ACCESS_TOKEN_KEY, access_token)
            if refresh_token:
                repo.put(REFRESH_TOKEN_KEY, refresh_token)
        self._notify()

    def update_user(self, user: UserProfile) -> None:
        with session_scope(self._session_factory) as db:
            CredentialRepository(db).put(USER_KEY, json.dumps(user.to_dict()))
        self._notify()

    def clear(self) -> None:
        with session_scope(self._session_factory) as db:
            CredentialRepository(db).delete(SESSION_KEYS)
        self._notify()

    # Reads

    def load(self) -> Optional[Session]:
        """Rebuild the session from storage; None when logged out or the profile is unreadable"""
        with session_scope(self._session_factory) as db:
            values = CredentialRepository(db).get_many(SESSION_KEYS)

        access_token = values.get(ACCESS_TOKEN_KEY)
        if not access_token:
            return None

        try:
            user = self._parse_user(values.get(USER_KEY))
        except CredentialStoreError as e:
            logging.warning(f"Ignoring stored session: {e}")
            return None

        return Session(
            access_token=access_token,
            refresh_token=values.get(REFRESH_TOKEN_KEY),
            user=user,
        )

    def is_authenticated(self) -> bool:
        """Presence check only; token expiry is the backend's call"""
        return bool(self.get_access_token())

    def get_access_token(self) -> Optional[str]:
        return self._get(ACCESS_TOKEN_KEY)

    def get_refresh_token(self) -> Optional[str]:
        return self._get(REFRESH_TOKEN_KEY)

    def get_user(self) -> Optional[UserProfile]:
        try:
            return self._parse_user(self._get(USER_KEY))
        except CredentialStoreError:
            return None

    def get_user_type(self) -> Optional[str]:
        user = self.get_user()
        return user.user_type if user else None

    # Subscription

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener for session changes; returns a callable that unsubscribes it"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        self.engine.dispose()

    def _get(self, key: str) -> Optional[str]:
        with session_scope(self._session_factory) as db:
            return CredentialRepository(db).get(key)

    @staticmethod
    def _parse_user(raw: Optional[str]) -> UserProfile:
        if not raw:
            raise CredentialStoreError("No stored user profile")
        try:
            return UserProfile.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise CredentialStoreError(f"Malformed stored user profile: {e}") from e

    def _notify(self) -> None:
        session = self.load()
        for listener in list(self._listeners):
            try:
                listener(session)
            except Exception:
                logging.exception("Session listener failed")
