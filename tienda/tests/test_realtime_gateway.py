import json
import unittest
import httpx
import pytest
from tienda.infra.gateway import Subscription
from tienda.infra.Realtime_Gateway import RealtimeGateway, apply_event, iter_sse
from tienda.utilities.errors import RemoteWriteError, SubscriptionError

DB = "https://tienda-demo.firebaseio.com"


async def _lines(text):
    for line in text.split("\n"):
        yield line


@pytest.mark.asyncio
async def test_iter_sse_groups_events():
    stream = "event: put\ndata: {\"path\": \"/\", \"data\": null}\n\n: comment\nevent: keep-alive\ndata: null\n\n"
    events = [e async for e in iter_sse(_lines(stream))]
    assert events == [("put", '{"path": "/", "data": null}'), ("keep-alive", "null")]


class TestApplyEvent(unittest.TestCase):

    def test_put_root_replaces_tree(self):
        tree = apply_event({"old": {"x": 1}}, "put", {"path": "/", "data": {"a": {"nombre": "Pan"}}})
        self.assertEqual(tree, {"a": {"nombre": "Pan"}})

    def test_put_root_array(self):
        tree = apply_event({}, "put", {"path": "/", "data": [{"n": 0}, None, {"n": 2}]})
        self.assertEqual(tree, {"0": {"n": 0}, "2": {"n": 2}})

    def test_put_child_and_delete(self):
        tree = {"a": {"nombre": "Pan"}}
        tree = apply_event(tree, "put", {"path": "/b", "data": {"nombre": "Leche"}})
        tree = apply_event(tree, "put", {"path": "/a", "data": None})
        self.assertEqual(tree, {"b": {"nombre": "Leche"}})

    def test_patch_merges_fields(self):
        tree = {"a": {"nombre": "Pan", "precio": 1}}
        tree = apply_event(tree, "patch", {"path": "/a", "data": {"precio": 2, "cantidad": 5}})
        self.assertEqual(tree, {"a": {"nombre": "Pan", "precio": 2, "cantidad": 5}})


class TestRealtimeGateway(unittest.IsolatedAsyncioTestCase):

    def gateway(self, handler, **kwargs):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        self.addAsyncCleanup(client.aclose)
        return RealtimeGateway(DB + "/", client=client, token_provider=lambda: "tok", **kwargs)

    async def test_create_returns_push_key(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url.copy_with(query=None))
            seen["auth"] = request.url.params["auth"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"name": "-Nxyz"})

        identifier = await self.gateway(handler).create("productos", {"nombre": "Pan", "cantidad": 2})
        self.assertEqual(identifier, "-Nxyz")
        self.assertEqual(seen["url"], f"{DB}/productos.json")
        self.assertEqual(seen["auth"], "tok")
        self.assertEqual(seen["body"], {"nombre": "Pan", "cantidad": 2})

    async def test_update_missing_child_never_writes(self):
        methods = []

        def handler(request):
            methods.append(request.method)
            return httpx.Response(200, content=b"null")

        with self.assertRaises(RemoteWriteError):
            await self.gateway(handler).update("productos", "-gone", {"nombre": "x"})
        self.assertEqual(methods, ["GET"])

    async def test_update_existing_child(self):
        methods = []

        def handler(request):
            methods.append(request.method)
            if request.method == "GET":
                self.assertEqual(request.url.params["shallow"], "true")
                return httpx.Response(200, json=True)
            return httpx.Response(200, content=request.content)

        await self.gateway(handler).update("productos", "-a", {"nombre": "Pan"})
        self.assertEqual(methods, ["GET", "PUT"])

    async def test_write_rejected(self):
        gateway = self.gateway(lambda request: httpx.Response(401, json={"error": "Permission denied"}))
        with self.assertRaises(RemoteWriteError) as ctx:
            await gateway.create("productos", {"nombre": "Pan"})
        self.assertEqual(ctx.exception.status, 401)

    async def test_fetch_snapshot_empty(self):
        gateway = self.gateway(lambda request: httpx.Response(200, content=b"null"))
        self.assertEqual(await gateway.read_all("productos"), [])

    async def test_stream_applies_events_until_cancelled(self):
        body = (
            'event: put\ndata: {"path": "/", "data": {"a": {"nombre": "Pan"}}}\n\n'
            'event: patch\ndata: {"path": "/a", "data": {"precio": 2}}\n\n'
            'event: keep-alive\ndata: null\n\n'
            'event: cancel\ndata: null\n\n'
        )

        def handler(request):
            self.assertEqual(request.headers["Accept"], "text/event-stream")
            return httpx.Response(200, content=body.encode())

        seen = []
        sub = Subscription("productos")
        with self.assertRaises(SubscriptionError):
            await self.gateway(handler)._consume("productos", lambda snap: seen.append(dict(snap)), sub)
        self.assertEqual(seen, [{"a": {"nombre": "Pan"}}, {"a": {"nombre": "Pan", "precio": 2}}])

    async def test_create_without_push_key(self):
        for response in (httpx.Response(200, json={}), httpx.Response(200, text="<html>proxy</html>")):
            gateway = self.gateway(lambda request, response=response: response)
            with self.assertRaises(RemoteWriteError):
                await gateway.create("productos", {"nombre": "Pan"})

    async def test_revoked_credentials_renew_token(self):
        body = 'event: auth_revoked\ndata: "credential is no longer valid"\n\n'
        revoked = []
        gateway = self.gateway(lambda request: httpx.Response(200, content=body.encode()),
                               on_auth_revoked=lambda: revoked.append(True))
        with self.assertRaises(SubscriptionError):
            await gateway._consume("productos", lambda snap: None, Subscription("productos"))
        self.assertEqual(revoked, [True])

    async def test_malformed_event(self):
        body = 'event: put\ndata: [1, 2]\n\n'
        gateway = self.gateway(lambda request: httpx.Response(200, content=body.encode()))
        with self.assertRaises(SubscriptionError):
            await gateway._consume("productos", lambda snap: None, Subscription("productos"))
