"""Real-time tree store gateway over the Firebase Realtime Database REST API.

Collections are top-level paths. ``create`` POSTs to get a push key,
``update`` overwrites the whole child with PUT, ``delete`` removes it.
Subscriptions use the REST streaming protocol (server-sent events): the
``put``/``patch`` events are applied to a local copy of the tree and the full
snapshot is delivered after each one. A broken stream is logged and reopened.
"""
import asyncio
import copy
import json
import logging
from typing import Any, AsyncIterator, Callable, Dict, List, Mapping, Optional, Tuple, Type

import httpx

from tienda.infra.gateway import (
    HttpGateway, Snapshot, SnapshotCallback, Subscription, TokenProvider, freeze_snapshot
)
from tienda.utilities.errors import RemoteError, RemoteReadError, RemoteWriteError, SubscriptionError

logger = logging.getLogger(__name__)


# --- streaming helpers -------------------------------------------------------------
async def iter_sse(lines: AsyncIterator[str]) -> AsyncIterator[Tuple[str, str]]:
    """Group raw SSE lines into (event, data) pairs."""
    event = "message"
    data: List[str] = []
    async for line in lines:
        line = line.rstrip("\r")
        if not line:
            if data:
                yield event, "\n".join(data)
            event, data = "message", []
            continue
        if line.startswith(":"):
            continue
        name, _, value = line.partition(":")
        value = value[1:] if value.startswith(" ") else value
        if name == "event":
            event = value
        elif name == "data":
            data.append(value)
    if data:
        yield event, "\n".join(data)


def _as_children(data: Any) -> Dict[str, Any]:
    # The database returns sequential numeric keys as a JSON array
    if isinstance(data, list):
        return {str(i): v for i, v in enumerate(data) if v is not None}
    return data if isinstance(data, dict) else {}


def _split(path: str) -> List[str]:
    return [p for p in (path or "/").split("/") if p]


def _set_path(tree: Dict[str, Any], parts: List[str], value: Any) -> Dict[str, Any]:
    if not parts:
        return copy.deepcopy(_as_children(value))
    node = tree
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            if value is None:
                return tree
            child = {}
            node[part] = child
        node = child
    if value is None:
        node.pop(parts[-1], None)
    else:
        node[parts[-1]] = copy.deepcopy(value)
    return tree


def apply_event(tree: Dict[str, Any], event: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Apply one 'put' or 'patch' stream event to ``tree`` and return the new tree."""
    parts = _split(payload.get("path", "/"))
    data = payload.get("data")
    if event == "put":
        return _set_path(tree, parts, data)
    if event == "patch" and isinstance(data, Mapping):
        for key, value in data.items():
            tree = _set_path(tree, parts + _split(key), value)
    return tree


class RealtimeGateway(HttpGateway):
    kind = "realtime"

    def __init__(self, database_url: str, *, client: Optional[httpx.AsyncClient] = None,
                 token_provider: Optional[TokenProvider] = None, timeout: float = 30.0,
                 reconnect_delay: float = 2.0, on_auth_revoked: Optional[Callable[[], None]] = None):
        super().__init__(client=client, token_provider=token_provider, timeout=timeout)
        self.database_url = database_url.rstrip("/")
        self.reconnect_delay = reconnect_delay
        self.on_auth_revoked = on_auth_revoked

    def _url(self, *parts: str) -> str:
        return f"{self.database_url}/{'/'.join(p.strip('/') for p in parts)}.json"

    async def _params(self, error_cls: Type[RemoteError], **extra) -> Dict[str, str]:
        params = dict(extra)
        token = await self._token(error_cls)
        if token:
            params["auth"] = token
        return params

    async def create(self, collection: str, record: Mapping[str, Any]) -> str:
        response = await self._send(
            "POST", self._url(collection), error_cls=RemoteWriteError,
            params=await self._params(RemoteWriteError), content=json.dumps(record, default=str),
        )
        action = f"create in '{collection}'"
        self._check(response, RemoteWriteError, action)
        body = self._json(response, RemoteWriteError, action)
        name = body.get("name") if isinstance(body, dict) else None
        if not isinstance(name, str) or not name:
            raise RemoteWriteError(f"{action} returned no push key", status=response.status_code)
        return name

    async def update(self, collection: str, identifier: str, record: Mapping[str, Any]) -> None:
        url = self._url(collection, identifier)
        lookup = await self._send("GET", url, error_cls=RemoteWriteError,
                                  params=await self._params(RemoteWriteError, shallow="true"))
        action = f"lookup of '{collection}/{identifier}'"
        self._check(lookup, RemoteWriteError, action)
        if self._json(lookup, RemoteWriteError, action) is None:
            raise RemoteWriteError(f"{collection}/{identifier} does not exist", status=404)
        response = await self._send(
            "PUT", url, error_cls=RemoteWriteError,
            params=await self._params(RemoteWriteError), content=json.dumps(record, default=str),
        )
        self._check(response, RemoteWriteError, f"update of '{collection}/{identifier}'")

    async def delete(self, collection: str, identifier: str) -> None:
        params = await self._params(RemoteWriteError)
        response = await self._send("DELETE", self._url(collection, identifier),
                                    error_cls=RemoteWriteError, params=params)
        self._check(response, RemoteWriteError, f"delete of '{collection}/{identifier}'")

    async def fetch_snapshot(self, collection: str) -> Snapshot:
        response = await self._send("GET", self._url(collection), error_cls=RemoteReadError,
                                    params=await self._params(RemoteReadError))
        action = f"read of '{collection}'"
        self._check(response, RemoteReadError, action)
        return freeze_snapshot(_as_children(self._json(response, RemoteReadError, action)))

    def subscribe(self, collection: str, on_snapshot: SnapshotCallback) -> Subscription:
        sub = Subscription(collection)
        task = asyncio.get_running_loop().create_task(self._stream(collection, on_snapshot, sub))
        sub.bind(task.cancel)
        return sub

    async def _stream(self, collection: str, on_snapshot: SnapshotCallback, sub: Subscription) -> None:
        while not sub.closed:
            try:
                await self._consume(collection, on_snapshot, sub)
            except (httpx.HTTPError, SubscriptionError, ValueError) as e:
                logger.warning("Stream for '%s' interrupted: %s", collection, e)
            if sub.closed:
                break
            await asyncio.sleep(self.reconnect_delay)

    async def _consume(self, collection: str, on_snapshot: SnapshotCallback, sub: Subscription) -> None:
        tree: Dict[str, Any] = {}
        async with self._client.stream(
            "GET", self._url(collection), params=await self._params(SubscriptionError),
            headers={"Accept": "text/event-stream"}, follow_redirects=True,
            timeout=httpx.Timeout(30.0, read=None),
        ) as response:
            if response.status_code != 200:
                raise SubscriptionError(f"stream for '{collection}' refused",
                                        status=response.status_code)
            async for event, data in iter_sse(response.aiter_lines()):
                if event in ("put", "patch"):
                    payload = json.loads(data)
                    if not isinstance(payload, dict):
                        raise SubscriptionError(f"malformed '{event}' event on '{collection}' stream")
                    tree = apply_event(tree, event, payload)
                    sub.deliver(on_snapshot, freeze_snapshot(_as_children(tree)))
                elif event == "cancel":
                    raise SubscriptionError(f"stream for '{collection}' cancelled by the server")
                elif event == "auth_revoked":
                    if self.on_auth_revoked is not None:
                        self.on_auth_revoked()
                    raise SubscriptionError(f"credentials for '{collection}' stream expired")
                # keep-alive events carry nothing
        if not sub.closed:
            raise SubscriptionError(f"stream for '{collection}' closed by the server")
