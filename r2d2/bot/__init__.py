from .commands import BotCommandHandlers, CommandHandlers
from .core import R2D2Bot
from .dispatcher import CommandDispatcher, address_pattern
from .signal_handler import SignalHandler

__all__ = [
    "BotCommandHandlers",
    "CommandDispatcher",
    "CommandHandlers",
    "R2D2Bot",
    "SignalHandler",
    "address_pattern",
]
