"""
Event Dispatcher - one-way hand-off of lifecycle intents

dispatch() returns as soon as the intent is recorded. There is no
response channel: delivery is best-effort, nothing is retried on this
side, and the eventual outcome is observed only through the Status Store
once the external runner settles it.

Implementations:
- LocalEventDispatcher: in-process fan-out to subscriber callbacks
- SpoolEventDispatcher: JSON files in a spool directory, written by a
  background worker, consumed by the external runner
"""

import json
import logging
import os
import queue
import threading
from abc import ABC, abstractmethod
from collections import deque
from pathlib import Path
from typing import Callable, Deque, Dict, Any, List, Optional, Union

from .types import Event, EventEntity, EventType

logger = logging.getLogger(__name__)


class IEventDispatcher(ABC):
    """Fire-and-forget event publication"""

    def dispatch(
        self,
        event_type: EventType,
        payload: Optional[Dict[str, Any]] = None,
        entity: Optional[EventEntity] = None,
    ) -> Event:
        """
        Build an envelope and publish it

        Returns:
            The published envelope (the immediate ack)
        """
        event = Event(type=EventType(event_type), entity=entity, payload=dict(payload or {}))
        return self.publish(event)

    @abstractmethod
    def publish(self, event: Event) -> Event:
        """Publish a pre-built envelope without waiting for delivery"""
        pass

    def close(self):
        """Deliver what is still pending and release resources"""
        pass


class LocalEventDispatcher(IEventDispatcher):
    """
    In-process dispatcher

    Subscribers run synchronously; their failures are logged and never
    reach the publisher. Recent events are kept in a bounded history.
    """

    def __init__(self, history_size: int = 1000):
        self._subscribers: List[Callable[[Event], None]] = []
        self._history: Deque[Event] = deque(maxlen=history_size)
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[[Event], None]):
        if callback not in self._subscribers:
            self._subscribers.append(callback)
            logger.info(f"Subscriber registered: {getattr(callback, '__name__', callback)}")

    def unsubscribe(self, callback: Callable[[Event], None]):
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def publish(self, event: Event) -> Event:
        with self._lock:
            self._history.append(event)

        logger.info(
            f"Event dispatched: {event.type.value} "
            f"(entity: {event.entity.id if event.entity else 'N/A'})"
        )

        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as e:
                logger.error(
                    f"Subscriber error ({getattr(callback, '__name__', callback)}): {e}",
                    exc_info=True,
                )
        return event

    def history(self, event_type: Optional[EventType] = None) -> List[Event]:
        with self._lock:
            events = list(self._history)
        if event_type is not None:
            events = [e for e in events if e.type == EventType(event_type)]
        return events


class SpoolEventDispatcher(IEventDispatcher):
    """
    Hands events to the external runner through a spool directory

    Each event becomes <spool_dir>/<event_id>.json. ULIDs sort by creation
    time, so the runner can process files in name order. Files are written
    to a temporary name and renamed so the runner never reads a partial
    file.
    """

    def __init__(self, spool_dir: Union[str, Path], max_queue_size: int = 10000):
        self.spool_dir = Path(spool_dir)
        self.spool_dir.mkdir(parents=True, exist_ok=True)
        self._queue: "queue.Queue[Optional[Event]]" = queue.Queue(maxsize=max_queue_size)
        self._worker = threading.Thread(target=self._run, name="tipi-event-spool", daemon=True)
        self._stopped = False
        self._worker.start()
        logger.info(f"SpoolEventDispatcher writing to {self.spool_dir}")

    def publish(self, event: Event) -> Event:
        if self._stopped:
            raise RuntimeError("SpoolEventDispatcher is shut down")
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            logger.error(f"Event spool queue full, dropping {event.type.value} ({event.event_id})")
            return event
        logger.info(
            f"Event dispatched: {event.type.value} "
            f"(entity: {event.entity.id if event.entity else 'N/A'}, id: {event.event_id})"
        )
        return event

    def _run(self):
        while True:
            event = self._queue.get()
            try:
                if event is None:
                    return
                self._write(event)
            except Exception as e:
                logger.error(f"Failed to spool event {event.event_id}: {e}", exc_info=True)
            finally:
                self._queue.task_done()

    def _write(self, event: Event) -> Path:
        target = self.spool_dir / f"{event.event_id}.json"
        tmp = self.spool_dir / f".{event.event_id}.json.tmp"
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(event.to_dict(), f, ensure_ascii=False)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
        os.replace(tmp, target)
        logger.debug(f"Event spooled: {target.name}")
        return target

    def flush(self):
        """Block until every queued event has been written"""
        self._queue.join()

    def close(self):
        self.shutdown()

    def shutdown(self, timeout: Optional[float] = 5.0):
        """Drain the queue and stop the worker"""
        if self._stopped:
            return
        self._stopped = True
        self._queue.put(None)
        self._worker.join(timeout)

    def pending_files(self) -> List[Path]:
        """Spooled event files not yet consumed, oldest first"""
        return sorted(self.spool_dir.glob("*.json"))
