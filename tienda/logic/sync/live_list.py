"""A reconciled list kept current by a gateway subscription."""
from __future__ import annotations
import logging
from typing import Any, Callable, Dict, List, Optional

from tienda.infra.gateway import RemoteGateway, Snapshot, Subscription
from tienda.logic.sync.reconcile import reconcile
from tienda.utilities.constants import ID_FIELD

logger = logging.getLogger(__name__)

__all__ = ["LiveList"]


class LiveList:
    """Subscribes to one collection and exposes ``items`` (UI order) and ``loading``.

    ``loading`` stays True until the first snapshot arrives. Every delivery
    replaces ``items`` wholesale; there is no diffing.
    """

    def __init__(self, gateway: RemoteGateway, collection: str, *, sort_field: Optional[str] = None,
                 on_change: Optional[Callable[[List[Dict[str, Any]]], None]] = None):
        self.gateway = gateway
        self.collection = collection
        self.sort_field = sort_field
        self.on_change = on_change
        self.items: List[Dict[str, Any]] = []
        self.loading = True
        self.revision = 0
        self._subscription: Optional[Subscription] = None

    @property
    def active(self) -> bool:
        return self._subscription is not None and not self._subscription.closed

    def start(self) -> "LiveList":
        """Idempotent: subscribe once."""
        if self.active:
            return self
        self.loading = True
        self._subscription = self.gateway.subscribe(self.collection, self._on_snapshot)
        logger.debug("Live list on '%s' started", self.collection)
        return self

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
            logger.debug("Live list on '%s' stopped", self.collection)

    def _on_snapshot(self, snapshot: Snapshot) -> None:
        self.items = reconcile(snapshot, sort_field=self.sort_field)
        self.loading = False
        self.revision += 1
        if self.on_change:
            self.on_change(self.items)

    def find(self, identifier: str) -> Optional[Dict[str, Any]]:
        for item in self.items:
            if item.get(ID_FIELD) == identifier:
                return item
        return None
