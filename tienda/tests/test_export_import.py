from datetime import datetime
import json
import tempfile
import unittest
from pathlib import Path
from tienda.infra.devices import (
    Clipboard, FilePicker, FileStore, LocalShare, MemoryClipboard, PresetFilePicker, ShareSink
)
from tienda.infra.Memory_Gateway import MemoryGateway
from tienda.logic.bulk.presets import IMPORT_PRESETS, ExportConfig, ImportConfig
from tienda.utilities.errors import EmptyImportError, ExtractionError, ImportCancelled
from tienda.utilities.export_import import DataExporter, DataImporter

FIXED_NOW = datetime(2024, 5, 1, 12, 30, 0)


class FakeExtraction:
    def __init__(self, rows=None, error=None):
        self.rows = rows or []
        self.error = error
        self.received = None

    async def extract(self, encoded):
        self.received = encoded
        if self.error:
            raise self.error
        return self.rows


class FailingClipboard(Clipboard):
    async def copy(self, text):
        raise RuntimeError("clipboard locked")


class UnavailableShare(ShareSink):
    def is_available(self):
        return False

    async def share(self, uri):
        raise AssertionError("share must not be called")


class TestDataImporter(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.excel = self.tmp / "mascotas.xlsx"
        self.excel.write_bytes(b"fake-excel")
        self.gateway = MemoryGateway()
        self.files = FileStore(self.tmp / "cache")

    def tearDown(self):
        self._tmp.cleanup()

    def importer(self, extraction):
        return DataImporter(self.gateway, extraction, self.files, PresetFilePicker(self.excel),
                            clock=lambda: FIXED_NOW)

    async def test_bad_row_is_counted_and_skipped(self):
        def mapper(row):
            if row["n"] == 3:
                raise ValueError("bad row")
            return {"n": row["n"]}

        config = ImportConfig("mascotas", ("n",), mapper)
        extraction = FakeExtraction(rows=[{"n": i} for i in range(1, 6)])
        result = await self.importer(extraction).import_collection(config)

        self.assertEqual((result.succeeded, result.failed), (4, 1))
        self.assertEqual(result.summary(), "4 registros guardados en 'mascotas'.\nErrores: 1")
        saved = await self.gateway.read_all("mascotas")
        self.assertEqual(sorted(r["n"] for r in saved), [1, 2, 4, 5])
        self.assertTrue(all(r["fechaImportacion"] == FIXED_NOW for r in saved))
        self.assertEqual(extraction.received, "ZmFrZS1leGNlbA==")

    async def test_preset_mapping(self):
        extraction = FakeExtraction(rows=[{"nombre": "Toby", "edad": "3"}, {}])
        result = await self.importer(extraction).import_collection(IMPORT_PRESETS["mascotas"])
        self.assertEqual(result.succeeded, 2)
        nombres = sorted(r["nombre"] for r in await self.gateway.read_all("mascotas"))
        self.assertEqual(nombres, ["Sin nombre", "Toby"])

    async def test_rows_without_expected_columns_are_flagged(self):
        extraction = FakeExtraction(rows=[{"foo": 1}, {"nombre": "Toby"}])
        with self.assertLogs("tienda.utilities.export_import", level="WARNING") as logs:
            result = await self.importer(extraction).import_collection(IMPORT_PRESETS["mascotas"])
        self.assertEqual((result.succeeded, result.unmatched), (2, 1))
        self.assertEqual(result.to_dict()["unmatched"], 1)
        self.assertIn("Row 1 has none of the expected columns", logs.output[0])

    async def test_empty_extraction_writes_nothing(self):
        with self.assertRaises(EmptyImportError):
            await self.importer(FakeExtraction(rows=[])).import_collection(IMPORT_PRESETS["bicicletas"])
        self.assertEqual(await self.gateway.read_all("bicicletas"), [])

    async def test_extraction_failure_writes_nothing(self):
        extraction = FakeExtraction(error=ExtractionError("Error HTTP: 502", status=502))
        with self.assertRaises(ExtractionError):
            await self.importer(extraction).import_collection(IMPORT_PRESETS["mascotas"])
        self.assertEqual(await self.gateway.read_all("mascotas"), [])

    async def test_cancelled_picker(self):
        extraction = FakeExtraction(rows=[{"nombre": "Toby"}])
        with self.assertRaises(ImportCancelled):
            await self.importer(extraction).import_collection(IMPORT_PRESETS["mascotas"],
                                                              picker=PresetFilePicker(None))
        self.assertIsNone(extraction.received)


class TestDataExporter(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.cache = Path(self._tmp.name) / "cache"
        self.gateway = MemoryGateway()
        await self.gateway.create("productos", {"nombre": "Pan", "precio": 1.5})
        self.config = ExportConfig(("productos",))

    async def asyncTearDown(self):
        self._tmp.cleanup()

    def exporter(self, clipboard, share):
        return DataExporter(self.gateway, FileStore(self.cache), clipboard, share, clock=lambda: FIXED_NOW)

    async def test_both_sinks(self):
        clipboard, share = MemoryClipboard(), LocalShare(self.cache)
        result = await self.exporter(clipboard, share).export(self.config)

        self.assertTrue(result.complete)
        self.assertEqual(result.counts, {"productos": 1})
        payload = json.loads(clipboard.text)
        self.assertEqual(payload["export_date"], "2024-05-01T12:30:00")
        self.assertEqual(payload["collections"]["productos"][0]["nombre"], "Pan")
        self.assertEqual(share.shared, [result.shared_uri])
        self.assertTrue(result.shared_uri.endswith("datos_export_20240501_123000.json"))

    async def test_clipboard_failure_does_not_block_share(self):
        share = LocalShare(self.cache)
        result = await self.exporter(FailingClipboard(), share).export(self.config)
        self.assertFalse(result.copied)
        self.assertIn("clipboard", result.errors)
        self.assertEqual(len(share.shared), 1)

    async def test_share_unavailable_still_copies(self):
        clipboard = MemoryClipboard()
        result = await self.exporter(clipboard, UnavailableShare()).export(self.config)
        self.assertTrue(result.copied)
        self.assertIsNotNone(clipboard.text)
        self.assertIn("share", result.errors)
        self.assertIsNone(result.shared_uri)


class TestDeviceInterfaces(unittest.TestCase):

    def test_incomplete_devices_cannot_be_built(self):
        class NoCopy(Clipboard):
            pass

        class NoShare(ShareSink):
            def is_available(self):
                return True

        class NoPick(FilePicker):
            pass

        for cls in (NoCopy, NoShare, NoPick):
            with self.subTest(device=cls.__name__), self.assertRaises(TypeError):
                cls()

    def test_bundled_devices(self):
        self.assertIsInstance(MemoryClipboard(), Clipboard)
        self.assertIsInstance(PresetFilePicker(None), FilePicker)
