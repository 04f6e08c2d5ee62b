from . import geyser, geyser_v1
from .base import EventHandler, HandlerContext, VerboseConfig

HANDLERS_BY_VERSION: dict[int, dict[type, EventHandler]] = {
    0: geyser.HANDLERS,
    1: geyser_v1.HANDLERS,
}

__all__ = (
    "HANDLERS_BY_VERSION",
    "EventHandler",
    "HandlerContext",
    "VerboseConfig",
    "geyser",
    "geyser_v1",
)
