"""Per-application lifecycle."""

from .transitions import AppAction, Transition, TRANSITIONS, get_transition
from .config import parse_app_config
from .controller import AppLifecycleController

__all__ = [
    "AppAction",
    "AppLifecycleController",
    "TRANSITIONS",
    "Transition",
    "get_transition",
    "parse_app_config",
]
