"""Remote data gateway contract.

Both backends (keyed-document store and real-time tree store) implement the
same operations:

  create(collection, record) -> identifier
  update(collection, identifier, record)      full overwrite, must exist
  delete(collection, identifier)              idempotent
  read_all(collection) -> [record, ...]       id-annotated, one shot
  subscribe(collection, on_snapshot) -> Subscription

Writes are never retried. A subscription delivers the full snapshot right
after registration and again after every change, in order, until its handle
is cancelled. Concurrent overwrites are last-write-wins.
"""
from __future__ import annotations
import copy
import inspect
import logging
from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Type, Union

import httpx

from tienda.logic.sync.reconcile import reconcile
from tienda.utilities.errors import AuthError, RemoteError

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
Snapshot = Mapping[str, Record]
SnapshotCallback = Callable[[Snapshot], None]
# Plain callables and coroutine functions (a refreshing auth client) are both accepted
TokenProvider = Callable[[], Union[Optional[str], Awaitable[Optional[str]]]]


def freeze_snapshot(data: Optional[Mapping[str, Any]]) -> Snapshot:
    """Copy raw store data into a read-only snapshot of mapping-valued records."""
    if not data:
        return MappingProxyType({})
    records = {
        str(key): copy.deepcopy(dict(value))
        for key, value in data.items()
        if isinstance(value, Mapping)
    }
    return MappingProxyType(records)


class Subscription:
    """Cancellation handle returned by ``subscribe``.

    Calling it (or ``unsubscribe()``) stops further deliveries. A delivery
    already in flight when it is cancelled may still be observed.
    """

    def __init__(self, collection: str, on_cancel: Optional[Callable[[], Any]] = None):
        self.collection = collection
        self._on_cancel = on_cancel
        self._closed = False
        self.deliveries = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def bind(self, on_cancel: Callable[[], Any]) -> "Subscription":
        self._on_cancel = on_cancel
        return self

    def deliver(self, callback: SnapshotCallback, snapshot: Snapshot) -> None:
        if self._closed:
            return
        self.deliveries += 1
        try:
            callback(snapshot)
        except Exception:
            logger.exception("Snapshot callback for '%s' failed", self.collection)

    def unsubscribe(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._on_cancel is not None:
            self._on_cancel()

    __call__ = unsubscribe


class RemoteGateway(ABC):
    kind = "abstract"

    @abstractmethod
    async def create(self, collection: str, record: Mapping[str, Any]) -> str: ...

    @abstractmethod
    async def update(self, collection: str, identifier: str, record: Mapping[str, Any]) -> None: ...

    @abstractmethod
    async def delete(self, collection: str, identifier: str) -> None: ...

    @abstractmethod
    async def fetch_snapshot(self, collection: str) -> Snapshot:
        """One-shot read of the whole collection as a snapshot."""

    @abstractmethod
    def subscribe(self, collection: str, on_snapshot: SnapshotCallback) -> Subscription: ...

    async def read_all(self, collection: str) -> List[Record]:
        """One-shot read; an empty collection gives an empty list."""
        return reconcile(await self.fetch_snapshot(collection))

    async def aclose(self) -> None:
        """Release network resources (no-op for in-process stores)."""


class HttpGateway(RemoteGateway):
    """Shared plumbing for the REST-backed gateways."""

    def __init__(self, *, client: Optional[httpx.AsyncClient] = None,
                 token_provider: Optional[TokenProvider] = None, timeout: float = 30.0):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._token_provider = token_provider

    async def _token(self, error_cls: Type[RemoteError]) -> Optional[str]:
        if self._token_provider is None:
            return None
        try:
            token = self._token_provider()
            if inspect.isawaitable(token):
                token = await token
        except AuthError as e:
            raise error_cls(f"Could not authorize request: {e}", status=401) from e
        return token

    async def _send(self, method: str, url: str, *, error_cls: Type[RemoteError],
                    **kwargs) -> httpx.Response:
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise error_cls(f"{method} {url} failed: {e}") from e

    @staticmethod
    def _check(response: httpx.Response, error_cls: Type[RemoteError], action: str) -> None:
        if response.is_success:
            return
        detail = response.text
        try:
            body = response.json()
            if isinstance(body, dict) and body.get("error"):
                err = body["error"]
                detail = err.get("message", detail) if isinstance(err, dict) else str(err)
        except ValueError:
            pass
        raise error_cls(f"{action} failed ({response.status_code}): {detail}",
                        status=response.status_code)

    @staticmethod
    def _json(response: httpx.Response, error_cls: Type[RemoteError], action: str) -> Any:
        """Decode a successful response body; a malformed one is a failure of the same kind."""
        try:
            return response.json()
        except ValueError as e:
            raise error_cls(f"{action} returned a malformed body: {e}",
                            status=response.status_code) from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = [
    'Record', 'Snapshot', 'SnapshotCallback', 'TokenProvider',
    'freeze_snapshot', 'Subscription', 'RemoteGateway', 'HttpGateway',
]
