"""Keyed-document store gateway over the Firestore REST API (v1).

Documents are encoded with Firestore's typed value format. Firestore's live
listeners are gRPC only, so subscriptions poll the collection and deliver a
snapshot whenever it differs from the previous one (the first poll is always
delivered).
"""
import asyncio
import logging
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Type

import httpx

from tienda.infra.gateway import (
    HttpGateway, Snapshot, SnapshotCallback, Subscription, TokenProvider, freeze_snapshot
)
from tienda.utilities.dates import parse_date, to_rfc3339
from tienda.utilities.errors import RemoteError, RemoteReadError, RemoteWriteError

logger = logging.getLogger(__name__)

FIRESTORE_BASE_URL = "https://firestore.googleapis.com/v1"
PAGE_SIZE = 300


# --- value codec -----------------------------------------------------------------
def encode_value(value: Any) -> Dict[str, Any]:
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, datetime):
        return {"timestampValue": to_rfc3339(value)}
    if isinstance(value, date):
        return {"stringValue": value.isoformat()}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, Mapping):
        return {"mapValue": {"fields": encode_fields(value)}}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    return {"stringValue": str(value)}


def encode_fields(record: Mapping[str, Any]) -> Dict[str, Any]:
    return {str(k): encode_value(v) for k, v in record.items()}


def decode_value(value: Mapping[str, Any]) -> Any:
    if not value:
        return None
    kind, raw = next(iter(value.items()))
    if kind == "nullValue":
        return None
    if kind == "integerValue":
        return int(raw)
    if kind == "doubleValue":
        return float(raw)
    if kind == "timestampValue":
        return parse_date(raw) or raw
    if kind == "mapValue":
        return decode_fields((raw or {}).get("fields", {}))
    if kind == "arrayValue":
        return [decode_value(v) for v in (raw or {}).get("values", [])]
    # booleanValue, stringValue, referenceValue, bytesValue, geoPointValue
    return raw


def decode_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: decode_value(v) for k, v in (fields or {}).items()}


def document_id(name: str) -> str:
    """'projects/p/databases/(default)/documents/productos/abc' -> 'abc'"""
    return name.rsplit("/", 1)[-1]


class FirestoreGateway(HttpGateway):
    kind = "document"

    def __init__(self, project_id: str, *, client: Optional[httpx.AsyncClient] = None,
                 token_provider: Optional[TokenProvider] = None, api_key: str = "",
                 poll_interval: float = 2.0, timeout: float = 30.0,
                 base_url: str = FIRESTORE_BASE_URL, database: str = "(default)"):
        super().__init__(client=client, token_provider=token_provider, timeout=timeout)
        self.project_id = project_id
        self.api_key = api_key
        self.poll_interval = poll_interval
        self._root = f"{base_url.rstrip('/')}/projects/{project_id}/databases/{database}/documents"

    async def _headers(self, error_cls: Type[RemoteError]) -> Dict[str, str]:
        token = await self._token(error_cls)
        return {"Authorization": f"Bearer {token}"} if token else {}

    def _params(self, **extra) -> Dict[str, str]:
        params = {k: v for k, v in extra.items() if v is not None}
        if self.api_key:
            params["key"] = self.api_key
        return params

    async def create(self, collection: str, record: Mapping[str, Any]) -> str:
        response = await self._send(
            "POST", f"{self._root}/{collection}", error_cls=RemoteWriteError,
            headers=await self._headers(RemoteWriteError), params=self._params(),
            json={"fields": encode_fields(record)},
        )
        action = f"create in '{collection}'"
        self._check(response, RemoteWriteError, action)
        body = self._json(response, RemoteWriteError, action)
        name = body.get("name") if isinstance(body, dict) else None
        if not isinstance(name, str) or not name:
            raise RemoteWriteError(f"{action} returned no document name", status=response.status_code)
        identifier = document_id(name)
        logger.debug("Created %s/%s", collection, identifier)
        return identifier

    async def update(self, collection: str, identifier: str, record: Mapping[str, Any]) -> None:
        # No updateMask: every field is replaced. The precondition makes a missing document fail.
        response = await self._send(
            "PATCH", f"{self._root}/{collection}/{identifier}", error_cls=RemoteWriteError,
            headers=await self._headers(RemoteWriteError),
            params=self._params(**{"currentDocument.exists": "true"}),
            json={"fields": encode_fields(record)},
        )
        self._check(response, RemoteWriteError, f"update of '{collection}/{identifier}'")

    async def delete(self, collection: str, identifier: str) -> None:
        response = await self._send(
            "DELETE", f"{self._root}/{collection}/{identifier}", error_cls=RemoteWriteError,
            headers=await self._headers(RemoteWriteError), params=self._params(),
        )
        if response.status_code == 404:
            return
        self._check(response, RemoteWriteError, f"delete of '{collection}/{identifier}'")

    async def fetch_snapshot(self, collection: str) -> Snapshot:
        records: Dict[str, Dict[str, Any]] = {}
        page_token = None
        while True:
            response = await self._send(
                "GET", f"{self._root}/{collection}", error_cls=RemoteReadError,
                headers=await self._headers(RemoteReadError),
                params=self._params(pageSize=str(PAGE_SIZE), pageToken=page_token),
            )
            if response.status_code == 404:
                break
            action = f"read of '{collection}'"
            self._check(response, RemoteReadError, action)
            body = self._json(response, RemoteReadError, action) or {}
            try:
                for doc in body.get("documents", []):
                    records[document_id(doc.get("name", ""))] = decode_fields(doc.get("fields", {}))
            except (AttributeError, TypeError, ValueError) as e:
                raise RemoteReadError(f"{action} returned unexpected documents: {e}",
                                      status=response.status_code) from e
            page_token = body.get("nextPageToken")
            if not page_token:
                break
        return freeze_snapshot(records)

    def subscribe(self, collection: str, on_snapshot: SnapshotCallback) -> Subscription:
        sub = Subscription(collection)
        task = asyncio.get_running_loop().create_task(self._poll(collection, on_snapshot, sub))
        sub.bind(task.cancel)
        return sub

    async def _poll(self, collection: str, on_snapshot: SnapshotCallback, sub: Subscription) -> None:
        last: Optional[Dict[str, Any]] = None
        while not sub.closed:
            try:
                snapshot = await self.fetch_snapshot(collection)
            except RemoteReadError as e:
                logger.warning("Polling '%s' failed, retrying: %s", collection, e)
            else:
                current = dict(snapshot)
                if last is None or current != last:
                    last = current
                    sub.deliver(on_snapshot, snapshot)
            await asyncio.sleep(self.poll_interval)
