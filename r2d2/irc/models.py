"""Shared IRC data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .connection import IRCConnection


class AuthState(Enum):
    DISCONNECTED = auto()
    CONNECTING = auto()
    AUTHENTICATING = auto()
    JOINED = auto()


class HandshakeState(Enum):
    IDLE = auto()
    SENT = auto()
    CONFIRMED = auto()


class EventKind(str, Enum):
    PRIVMSG = "PRIVMSG"
    NOTICE = "NOTICE"


@dataclass(frozen=True, slots=True)
class InboundEvent:
    sender: str
    target: str
    text: str
    kind: EventKind


@dataclass(frozen=True, slots=True)
class Request:
    sender: str
    destination: str
    command: str
    args: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Frame:
    destination: str
    label: str
    body: str

    def render(self) -> str:
        return f"{self.label}: {self.body}"


@dataclass
class Session:
    """The single authenticated session. Only SessionManager mutates it."""

    nick: str
    channel: str
    channel_key: str = ""
    state: AuthState = AuthState.DISCONNECTED
    connection: IRCConnection | None = field(default=None, repr=False)

    @property
    def ready(self) -> bool:
        return self.state is AuthState.JOINED
