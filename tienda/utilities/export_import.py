"""
Bulk import and export of collection data.

Import: pick an Excel file, send it base64-encoded to the extraction service,
map each returned row and create one record per row. Rows are written one at
a time and each success or failure is tallied; a bad row never stops the run.

Export: read whole collections, serialize them as indented JSON and hand the
text to the clipboard and to the share sheet. Each sink is best-effort.
"""
import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from tienda.infra.devices import Clipboard, FilePicker, FileStore, ShareSink
from tienda.infra.extraction_client import ExtractionClient
from tienda.infra.gateway import RemoteGateway
from tienda.logic.bulk.presets import ExportConfig, ImportConfig
from tienda.utilities.constants import EXCEL_MIME_TYPES
from tienda.utilities.errors import EmptyImportError, ExtractionError, ImportCancelled

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    collection: str
    succeeded: int = 0
    failed: int = 0
    unmatched: int = 0  # rows carrying none of the expected columns (saved with fallbacks)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed

    def summary(self) -> str:
        return f"{self.succeeded} registros guardados en '{self.collection}'.\nErrores: {self.failed}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'collection': self.collection,
            'succeeded': self.succeeded,
            'failed': self.failed,
            'unmatched': self.unmatched,
        }


@dataclass
class ExportResult:
    text: str
    counts: Dict[str, int]
    copied: bool = False
    shared_uri: Optional[str] = None
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            'counts': self.counts,
            'copied': self.copied,
            'shared_uri': self.shared_uri,
            'errors': self.errors,
        }


def _json_default(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


class DataImporter:
    """Import spreadsheet rows into a collection."""

    def __init__(self, gateway: RemoteGateway, extraction: ExtractionClient, files: FileStore,
                 picker: Optional[FilePicker] = None, clock: Callable[[], datetime] = datetime.now):
        self.gateway = gateway
        self.extraction = extraction
        self.files = files
        self.picker = picker
        self.clock = clock

    async def import_collection(self, config: ImportConfig,
                                picker: Optional[FilePicker] = None) -> ImportResult:
        """
        Run the whole pipeline for ``config``.

        Raises ImportCancelled, ExtractionError or EmptyImportError before any
        write happens; after that only the tally reports problems.
        """
        picker = picker or self.picker
        path = await picker.pick(EXCEL_MIME_TYPES) if picker else None
        if path is None:
            raise ImportCancelled("No se seleccionó archivo.")

        try:
            encoded = await self.files.read_base64(path)
        except OSError as e:
            raise ExtractionError(f"No se pudo leer el archivo: {e}") from e

        rows = await self.extraction.extract(encoded)
        if not rows:
            raise EmptyImportError("El Excel está vacío o no tiene datos.")

        result = ImportResult(config.collection)
        expected = set(config.columns)
        for index, row in enumerate(rows, start=1):
            if expected and expected.isdisjoint(row):
                result.unmatched += 1
                logger.warning(f"Row {index} has none of the expected columns {sorted(expected)}: {sorted(row)}")
            try:
                record = config.map_row(row)
                if config.timestamp_field:
                    record = {**record, config.timestamp_field: self.clock()}
                await self.gateway.create(config.collection, record)
            except Exception as e:
                result.failed += 1
                logger.error(f"Error guardando fila {index} en '{config.collection}': {row!r}: {e}")
            else:
                result.succeeded += 1

        logger.info(f"{config.label or 'Import'}: {result.succeeded}/{result.total} rows into '{config.collection}'")
        return result


class DataExporter:
    """Export collections as JSON text to the clipboard and the share sheet."""

    def __init__(self, gateway: RemoteGateway, files: FileStore, clipboard: Clipboard,
                 share: ShareSink, clock: Callable[[], datetime] = datetime.now):
        self.gateway = gateway
        self.files = files
        self.clipboard = clipboard
        self.share = share
        self.clock = clock

    async def collect(self, config: ExportConfig) -> Dict[str, List[Dict[str, Any]]]:
        data = {}
        for collection in config.collections:
            data[collection] = await self.gateway.read_all(collection)
        return data

    def serialize(self, data: Dict[str, List[Dict[str, Any]]]) -> str:
        payload = {
            'export_date': self.clock().isoformat(timespec='seconds'),
            'collections': data,
        }
        return json.dumps(payload, indent=2, ensure_ascii=False, default=_json_default)

    async def export(self, config: ExportConfig) -> ExportResult:
        """Read, serialize and deliver. Read failures propagate; sink failures are recorded."""
        data = await self.collect(config)
        text = self.serialize(data)
        result = ExportResult(text=text, counts={name: len(rows) for name, rows in data.items()})

        try:
            await self.clipboard.copy(text)
            result.copied = True
        except Exception as e:
            result.errors['clipboard'] = str(e)
            logger.error(f"Copy to clipboard failed: {e}")

        try:
            if not self.share.is_available():
                raise RuntimeError("Compartir no está disponible en este dispositivo")
            timestamp = self.clock().strftime("%Y%m%d_%H%M%S")
            path = await self.files.write_cache(f"{config.filename_prefix}_{timestamp}.json", text)
            uri = path.resolve().as_uri()
            await self.share.share(uri)
            result.shared_uri = uri
        except Exception as e:
            result.errors['share'] = str(e)
            logger.error(f"Share failed: {e}")

        logger.info(f"Exported {result.counts} (copied={result.copied}, shared={bool(result.shared_uri)})")
        return result
