"""
client/session.py -- Client-side session state machine.

Pattern: pure transition table. transition() maps (state, event) to the next
state plus the side effects that transition owes (persist, clear). It never
performs I/O. SessionController is the one place that runs those effects
against a SessionStorage, so storage writes happen only at defined
transitions:

    anonymous | errored | authenticated --submit-->  pending
    pending                             --success--> authenticated  [persist]
    pending                             --failure--> errored
    any                                 --logout-->  anonymous      [clear]

Any other (state, event) pair raises InvalidTransition.

Layer rule: client/ never imports from api/, auth/, or core/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from client.storage import SessionStorage

logger = logging.getLogger("userauth.client")


class Status(str, Enum):
    ANONYMOUS = "anonymous"
    PENDING = "pending"
    AUTHENTICATED = "authenticated"
    ERRORED = "errored"


class EventKind(str, Enum):
    SUBMIT = "submit"
    SUCCESS = "success"
    FAILURE = "failure"
    LOGOUT = "logout"


class Effect(str, Enum):
    PERSIST = "persist"
    CLEAR = "clear"


@dataclass(frozen=True)
class Event:
    kind: EventKind
    user: Optional[dict] = None
    token: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def submit(cls) -> "Event":
        return cls(EventKind.SUBMIT)

    @classmethod
    def success(cls, user: dict, token: str) -> "Event":
        return cls(EventKind.SUCCESS, user=user, token=token)

    @classmethod
    def failure(cls, error: str) -> "Event":
        return cls(EventKind.FAILURE, error=error)

    @classmethod
    def logout(cls) -> "Event":
        return cls(EventKind.LOGOUT)


@dataclass(frozen=True)
class SessionState:
    status: Status = Status.ANONYMOUS
    user: Optional[dict] = None
    token: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.status is Status.AUTHENTICATED


class InvalidTransition(ValueError):
    def __init__(self, status: Status, kind: EventKind) -> None:
        super().__init__(f"event '{kind.value}' is not allowed in state '{status.value}'")
        self.status = status
        self.kind = kind


_TRANSITIONS: dict[tuple[Status, EventKind], tuple[Status, tuple[Effect, ...]]] = {
    (Status.ANONYMOUS, EventKind.SUBMIT): (Status.PENDING, ()),
    (Status.ERRORED, EventKind.SUBMIT): (Status.PENDING, ()),
    (Status.AUTHENTICATED, EventKind.SUBMIT): (Status.PENDING, ()),
    (Status.PENDING, EventKind.SUCCESS): (Status.AUTHENTICATED, (Effect.PERSIST,)),
    (Status.PENDING, EventKind.FAILURE): (Status.ERRORED, ()),
    (Status.ANONYMOUS, EventKind.LOGOUT): (Status.ANONYMOUS, (Effect.CLEAR,)),
    (Status.PENDING, EventKind.LOGOUT): (Status.ANONYMOUS, (Effect.CLEAR,)),
    (Status.AUTHENTICATED, EventKind.LOGOUT): (Status.ANONYMOUS, (Effect.CLEAR,)),
    (Status.ERRORED, EventKind.LOGOUT): (Status.ANONYMOUS, (Effect.CLEAR,)),
}


def transition(state: SessionState, event: Event) -> tuple[SessionState, tuple[Effect, ...]]:
    """Return the next state and the effects owed by this transition."""
    try:
        target, effects = _TRANSITIONS[(state.status, event.kind)]
    except KeyError:
        raise InvalidTransition(state.status, event.kind) from None

    if target is Status.PENDING:
        # A new submission drops the previous session and error.
        return SessionState(status=Status.PENDING), effects
    if target is Status.AUTHENTICATED:
        return replace(state, status=target, user=event.user, token=event.token, error=None), effects
    if target is Status.ERRORED:
        return replace(state, status=target, error=event.error), effects
    return SessionState(), effects


class SessionController:
    """Holds the current SessionState and runs transition effects.

    Usage:
        controller = SessionController(SessionStorage(path))
        controller.dispatch(Event.submit())
        controller.dispatch(Event.success(user, token))   # persisted here
        controller.dispatch(Event.logout())               # cleared here
    """

    def __init__(self, storage: SessionStorage) -> None:
        self._storage = storage
        restored = storage.load()
        self.state: SessionState = restored if restored is not None else SessionState()

    def dispatch(self, event: Event) -> SessionState:
        new_state, effects = transition(self.state, event)
        for effect in effects:
            if effect is Effect.PERSIST:
                self._storage.save(new_state)
            elif effect is Effect.CLEAR:
                self._storage.clear()
        logger.debug("session %s --%s--> %s", self.state.status.value, event.kind.value, new_state.status.value)
        self.state = new_state
        return new_state
