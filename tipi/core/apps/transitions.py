"""
Application transition table

    action     required state(s)    new state      event
    install    missing / no record  installing     install
    start      stopped              starting       start
    stop       running              stopping       stop
    uninstall  stopped, missing     uninstalling   uninstall
    update     stopped, running     updating       update
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet

from tipi.core.events import EventType
from tipi.store import AppStatus


class AppAction(str, Enum):
    INSTALL = "install"
    START = "start"
    STOP = "stop"
    UNINSTALL = "uninstall"
    UPDATE = "update"


@dataclass(frozen=True)
class Transition:
    action: AppAction
    allowed_from: FrozenSet[AppStatus]
    to: AppStatus
    event: EventType
    allow_absent: bool = False


TRANSITIONS: Dict[AppAction, Transition] = {
    AppAction.INSTALL: Transition(
        AppAction.INSTALL,
        frozenset({AppStatus.MISSING}),
        AppStatus.INSTALLING,
        EventType.INSTALL,
        allow_absent=True,
    ),
    AppAction.START: Transition(
        AppAction.START,
        frozenset({AppStatus.STOPPED}),
        AppStatus.STARTING,
        EventType.START,
    ),
    AppAction.STOP: Transition(
        AppAction.STOP,
        frozenset({AppStatus.RUNNING}),
        AppStatus.STOPPING,
        EventType.STOP,
    ),
    AppAction.UNINSTALL: Transition(
        AppAction.UNINSTALL,
        frozenset({AppStatus.STOPPED, AppStatus.MISSING}),
        AppStatus.UNINSTALLING,
        EventType.UNINSTALL,
    ),
    AppAction.UPDATE: Transition(
        AppAction.UPDATE,
        frozenset({AppStatus.STOPPED, AppStatus.RUNNING}),
        AppStatus.UPDATING,
        EventType.UPDATE,
    ),
}


def get_transition(action: AppAction) -> Transition:
    return TRANSITIONS[AppAction(action)]
