"""IRC subsystem package.

Contains the transport (connection, parser, heartbeat), the NickServ
handshake, the session manager and the response transmitter.
"""

from .auth import NickServHandshake  # noqa: F401
from .connection import IRCConnection, Subscription  # noqa: F401
from .heartbeat import IRCHeartbeat  # noqa: F401
from .models import (  # noqa: F401
    AuthState,
    EventKind,
    Frame,
    HandshakeState,
    InboundEvent,
    Request,
    Session,
)
from .parser import IRCMessage, build_event, parse_irc_message  # noqa: F401
from .session import SessionManager  # noqa: F401
from .transmitter import ResponseTransmitter, split_frames  # noqa: F401

__all__ = [
    "AuthState",
    "EventKind",
    "Frame",
    "HandshakeState",
    "IRCConnection",
    "IRCHeartbeat",
    "IRCMessage",
    "InboundEvent",
    "NickServHandshake",
    "Request",
    "ResponseTransmitter",
    "Session",
    "SessionManager",
    "Subscription",
    "build_event",
    "parse_irc_message",
    "split_frames",
]
