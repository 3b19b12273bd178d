"""Handler abstractions and registries."""

from .base import Handler
from .builtin import NoopHandler, PatternScanHandler, StaticResultHandler, register_builtin_handlers
from .registry import HandlerRegistry

__all__ = [
    "Handler",
    "HandlerRegistry",
    "NoopHandler",
    "PatternScanHandler",
    "StaticResultHandler",
    "register_builtin_handlers",
]
