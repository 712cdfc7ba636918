"""Session cache: the active identity in memory and in a persisted slot."""

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Protocol

from pydantic import BaseModel, ValidationError

from currency_converter.domain.models import Account, Session, SessionEvent

SESSION_KEY = "user"

_logger = logging.getLogger(__name__)

SessionObserver = Callable[[SessionEvent], None]


class SessionStore(Protocol):
    """Lightweight key-value persistence for the session snapshot."""

    def get(self, key: str) -> str | None:
        """Return the value stored under a key, if present."""

    def set(self, key: str, value: str) -> None:
        """Store a value under a key."""

    def remove(self, key: str) -> None:
        """Remove a key if present."""


class AccountSnapshot(BaseModel):
    """Serialized form of the active account."""

    id: int
    name: str
    email: str
    credential: str

    @classmethod
    def from_account(cls, account: Account) -> "AccountSnapshot":
        if account.id is None:
            raise ValueError("Only persisted accounts can be snapshotted")
        return cls(
            id=account.id,
            name=account.name,
            email=account.email,
            credential=account.credential,
        )

    def to_account(self) -> Account:
        return Account(
            id=self.id, name=self.name, email=self.email, credential=self.credential
        )


@dataclass
class SessionCache:
    """Holds the current session and broadcasts every transition.

    Observers run synchronously, once per transition, in the order the
    transitions were requested.
    """

    store: SessionStore
    _session: Session = field(default_factory=Session, init=False)
    _observers: list[SessionObserver] = field(default_factory=list, init=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False)

    @property
    def session(self) -> Session:
        return self._session

    @property
    def account(self) -> Account | None:
        return self._session.account

    def subscribe(self, observer: SessionObserver) -> Callable[[], None]:
        """Register an observer and return a callable that removes it."""
        with self._lock:
            self._observers.append(observer)

        def unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe

    def restore(self) -> Session:
        """Install the persisted snapshot as the active session.

        The snapshot is trusted as is; a corrupt snapshot yields an
        anonymous session instead of an error.
        """
        with self._lock:
            account = self._read_snapshot()
            self._transition(
                "restore", replace(self._session, account=account, initialized=True)
            )
            return self._session

    def activate(self, account: Account) -> Session:
        """Persist the account snapshot and make it the active session."""
        snapshot = AccountSnapshot.from_account(account)
        with self._lock:
            self.store.set(SESSION_KEY, snapshot.model_dump_json())
            self._transition(
                "activate", replace(self._session, account=account, initialized=True)
            )
            return self._session

    def clear(self) -> Session:
        """Remove the snapshot and reset to an anonymous session."""
        with self._lock:
            self.store.remove(SESSION_KEY)
            self._transition("clear", replace(self._session, account=None))
            return self._session

    @contextmanager
    def loading(self) -> Iterator[None]:
        """Mark the session as busy for the duration of the block."""
        try:
            with self._lock:
                self._transition("loading", replace(self._session, loading=True))
            yield
        finally:
            with self._lock:
                self._transition("loading", replace(self._session, loading=False))

    def _read_snapshot(self) -> Account | None:
        raw = self.store.get(SESSION_KEY)
        if raw is None:
            return None
        try:
            return AccountSnapshot.model_validate_json(raw).to_account()
        except ValidationError:
            _logger.warning("Discarding corrupt session snapshot")
            return None

    def _transition(self, kind: str, session: Session) -> None:
        self._session = session
        event = SessionEvent(kind=kind, session=session)
        for observer in list(self._observers):
            try:
                observer(event)
            except Exception:
                _logger.exception("Session observer failed on %s", kind)
