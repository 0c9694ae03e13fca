import unittest
from tienda.infra.Memory_Gateway import MemoryGateway
from tienda.logic.sync.live_list import LiveList
from tienda.utilities.errors import RemoteWriteError


class TestMemoryGateway(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.gateway = MemoryGateway()

    async def test_create_then_read_all(self):
        identifier = await self.gateway.create("productos", {"nombre": "Pan", "precio": 1.5})
        self.assertEqual(await self.gateway.read_all("productos"),
                         [{"nombre": "Pan", "precio": 1.5, "id": identifier}])

    async def test_read_all_empty_collection(self):
        self.assertEqual(await self.gateway.read_all("nada"), [])

    async def test_update_missing_fails(self):
        with self.assertRaises(RemoteWriteError) as ctx:
            await self.gateway.update("productos", "nope", {"nombre": "x"})
        self.assertEqual(ctx.exception.status, 404)

    async def test_delete_is_idempotent(self):
        identifier = await self.gateway.create("productos", {"nombre": "Pan"})
        await self.gateway.delete("productos", identifier)
        await self.gateway.delete("productos", identifier)
        await self.gateway.delete("productos", "never-existed")
        self.assertEqual(await self.gateway.read_all("productos"), [])

    async def test_last_write_wins(self):
        identifier = await self.gateway.create("productos", {"nombre": "Pan", "precio": 1})
        await self.gateway.update("productos", identifier, {"nombre": "Pan", "precio": 2})
        await self.gateway.update("productos", identifier, {"nombre": "Pan integral", "precio": 3})
        self.assertEqual(await self.gateway.read_all("productos"),
                         [{"nombre": "Pan integral", "precio": 3, "id": identifier}])

    async def test_subscribe_delivers_immediately_and_on_change(self):
        seen = []
        sub = self.gateway.subscribe("productos", lambda snap: seen.append(dict(snap)))
        self.assertEqual(seen, [{}])

        identifier = await self.gateway.create("productos", {"nombre": "Pan"})
        self.assertEqual(seen[-1], {identifier: {"nombre": "Pan"}})

        sub.unsubscribe()
        await self.gateway.create("productos", {"nombre": "Leche"})
        self.assertEqual(len(seen), 2)
        self.assertEqual(self.gateway.listener_count("productos"), 0)

    async def test_snapshot_is_read_only(self):
        await self.gateway.create("productos", {"nombre": "Pan"})
        snapshot = await self.gateway.fetch_snapshot("productos")
        with self.assertRaises(TypeError):
            snapshot["x"] = {}

    async def test_callback_error_does_not_break_other_subscribers(self):
        seen = []

        def broken(_snapshot):
            raise RuntimeError("boom")

        self.gateway.subscribe("productos", broken)
        self.gateway.subscribe("productos", lambda snap: seen.append(len(snap)))
        await self.gateway.create("productos", {"nombre": "Pan"})
        self.assertEqual(seen, [0, 1])


class TestLiveList(unittest.IsolatedAsyncioTestCase):

    async def test_items_follow_the_store(self):
        gateway = MemoryGateway(seed={"imc_registros": {
            "a": {"nombre": "Ana", "fecha": "2024-01-01T08:00:00"},
        }})
        changes = []
        lista = LiveList(gateway, "imc_registros", sort_field="fecha", on_change=changes.append)
        self.assertTrue(lista.loading)

        lista.start()
        lista.start()
        self.assertFalse(lista.loading)
        self.assertEqual(gateway.listener_count("imc_registros"), 1)
        self.assertEqual([i["id"] for i in lista.items], ["a"])

        b = await gateway.create("imc_registros", {"nombre": "Luis", "fecha": "2024-02-01T08:00:00"})
        self.assertEqual([i["id"] for i in lista.items], [b, "a"])
        self.assertEqual(lista.find(b)["nombre"], "Luis")
        self.assertEqual(len(changes), 2)

        lista.stop()
        self.assertFalse(lista.active)
        await gateway.create("imc_registros", {"nombre": "Eva", "fecha": "2024-03-01T08:00:00"})
        self.assertEqual(len(lista.items), 2)
