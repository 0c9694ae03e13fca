"""In-process gateway: same contract as the remote stores, no network.

Used when BACKEND=memory and by the tests. Collections keep insertion order;
every write publishes the new full snapshot of its collection on an
instance-owned EventBus.
"""
import copy
from collections import defaultdict
from typing import Any, Dict, Mapping
from uuid import uuid4

from tienda.events.Event_Bus import EventBus
from tienda.infra.gateway import (
    RemoteGateway, Snapshot, SnapshotCallback, Subscription, freeze_snapshot
)
from tienda.utilities.errors import RemoteWriteError


class MemoryGateway(RemoteGateway):
    kind = "memory"

    def __init__(self, seed: Mapping[str, Mapping[str, Mapping[str, Any]]] = None):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = defaultdict(dict)
        self._bus = EventBus()
        for name, records in (seed or {}).items():
            for identifier, record in records.items():
                self._collections[name][identifier] = copy.deepcopy(dict(record))

    def _new_id(self) -> str:
        return uuid4().hex[:20]

    def _publish(self, collection: str) -> None:
        self._bus.publish(collection, freeze_snapshot(self._collections[collection]))

    async def create(self, collection: str, record: Mapping[str, Any]) -> str:
        identifier = self._new_id()
        self._collections[collection][identifier] = copy.deepcopy(dict(record))
        self._publish(collection)
        return identifier

    async def update(self, collection: str, identifier: str, record: Mapping[str, Any]) -> None:
        store = self._collections[collection]
        if identifier not in store:
            raise RemoteWriteError(f"{collection}/{identifier} does not exist", status=404)
        store[identifier] = copy.deepcopy(dict(record))
        self._publish(collection)

    async def delete(self, collection: str, identifier: str) -> None:
        if self._collections[collection].pop(identifier, None) is not None:
            self._publish(collection)

    async def fetch_snapshot(self, collection: str) -> Snapshot:
        return freeze_snapshot(self._collections.get(collection))

    def subscribe(self, collection: str, on_snapshot: SnapshotCallback) -> Subscription:
        sub = Subscription(collection)

        def _listener(_topic: str, snapshot: Snapshot) -> None:
            sub.deliver(on_snapshot, snapshot)

        sub.bind(self._bus.subscribe(collection, _listener))
        sub.deliver(on_snapshot, freeze_snapshot(self._collections.get(collection)))
        return sub

    def listener_count(self, collection: str) -> int:
        return self._bus.subscriber_count(collection)
