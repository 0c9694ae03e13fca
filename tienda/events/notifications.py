"""User-facing alerts.

Every screen reports the outcome of an operation as a single alert
(title + message), the way a mobile app pops a modal. Alerts are kept in a
bounded in-memory buffer so the web layer can poll for new ones.

Design:
  * Each alert gets an auto-increment integer id (cursor); clients pass
    since=<last_id_seen> to receive only newer alerts.
  * A Lock guards the buffer since uvicorn may run sync endpoints in a
    threadpool.
  * max_events caps memory use.
"""
from __future__ import annotations
import logging
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Dict, List, Optional

from tienda.utilities.constants import MAX_NOTIFICATIONS

logger = logging.getLogger(__name__)

INFO = "info"
ERROR = "error"


class NotificationCenter:
    def __init__(self, max_events: int = MAX_NOTIFICATIONS):
        self._lock = Lock()
        self._events: List[Dict[str, Any]] = []
        self._next_id = 1
        self.max_events = max_events

    def alert(self, title: str, message: str = "", *, level: str = INFO) -> Dict[str, Any]:
        """Record one alert and return it."""
        with self._lock:
            evt = {
                'id': self._next_id,
                'level': level,
                'title': title,
                'message': message,
                'ts': datetime.now(timezone.utc).isoformat(),
            }
            self._events.append(evt)
            self._next_id += 1
            if len(self._events) > self.max_events:
                del self._events[: len(self._events) - self.max_events]
        log = logger.warning if level == ERROR else logger.info
        log("[alert] %s: %s", title, message)
        return evt

    def error(self, title: str, message: str = "") -> Dict[str, Any]:
        return self.alert(title, message, level=ERROR)

    @property
    def cursor(self) -> int:
        """Id of the newest alert (0 when none was raised yet)."""
        with self._lock:
            return self._events[-1]['id'] if self._events else 0

    def get_events(self, since: Optional[int] = None) -> Dict[str, Any]:
        """Return alerts newer than 'since' (exclusive) plus the next cursor."""
        with self._lock:
            if since is None:
                data = list(self._events)
            else:
                data = [e for e in self._events if e['id'] > since]
            next_cursor = self._events[-1]['id'] if self._events else since or 0
        return {'events': data, 'next_cursor': next_cursor}

    def latest(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            return self._events[-1] if self._events else None


__all__ = ['NotificationCenter', 'INFO', 'ERROR']
