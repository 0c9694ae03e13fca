"""Small observer hub used to fan out change notifications.

Topics are plain strings (the in-process store uses collection names).
Each store owns its own bus; there is no process-wide instance.
Subscribers are callables taking (topic, payload).
"""
from __future__ import annotations
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Listener = Callable[[str, Any], None]


class EventBus:
	def __init__(self):
		self._subscribers: Dict[str, List[Listener]] = defaultdict(list)

	def subscribe(self, topic: str, callback: Listener) -> Callable[[], None]:
		"""Register ``callback`` and return a handle that removes it again."""
		if callback not in self._subscribers[topic]:
			self._subscribers[topic].append(callback)

		def _unsubscribe() -> None:
			self.unsubscribe(topic, callback)

		return _unsubscribe

	def unsubscribe(self, topic: str, callback: Listener) -> None:
		try:
			self._subscribers[topic].remove(callback)
		except (ValueError, KeyError):
			pass

	def subscriber_count(self, topic: str) -> int:
		return len(self._subscribers.get(topic, []))

	def publish(self, topic: str, payload: Any) -> None:
		# Copy so a listener can unsubscribe itself during delivery
		for cb in list(self._subscribers.get(topic, [])):
			try:
				cb(topic, payload)
			except Exception:
				logger.exception("Error delivering %s to %r", topic, cb)


__all__ = ['EventBus', 'Listener']
