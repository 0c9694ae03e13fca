"""Product management on the document store.

The list is reloaded with a one-shot read after every write. The screen comes
in two variants: 'import' (Excel import into mascotas/bicicletas) and
'export' (copy/share a JSON dump).
"""
import logging
from typing import Any, Dict, List, Mapping, Optional

from tienda.context import ServiceContext
from tienda.infra.devices import FilePicker
from tienda.logic.bulk.presets import IMPORT_PRESETS, export_preset
from tienda.logic.forms.definitions import PRODUCTO_FORM
from tienda.logic.forms.session import FormSession
from tienda.utilities.constants import ID_FIELD, PRODUCTOS
from tienda.utilities.errors import ImportCancelled, ImportHalted, RemoteReadError, RemoteWriteError
from tienda.utilities.export_import import DataExporter, DataImporter, ExportResult, ImportResult

logger = logging.getLogger(__name__)

VARIANTS = ("import", "export")


class ProductosScreen:
    def __init__(self, context: ServiceContext, variant: Optional[str] = None):
        variant = variant or context.settings.productos_variant
        if variant not in VARIANTS:
            raise ValueError(f"Unknown productos variant '{variant}'")
        self.variant = variant
        self.gateway = context.documents
        self.notifications = context.notifications
        self.form = FormSession(PRODUCTO_FORM, context.documents, context.notifications)
        self.productos: List[Dict[str, Any]] = []

        self.import_presets = dict(IMPORT_PRESETS) if variant == "import" else {}
        self.export_config = export_preset(context.settings.export_collections) if variant == "export" else None
        self.importer = DataImporter(context.documents, context.extraction, context.files, context.picker)
        self.exporter = DataExporter(context.documents, context.files, context.clipboard, context.share)

    # --- list ------------------------------------------------------------------------
    async def cargar_datos(self) -> List[Dict[str, Any]]:
        try:
            self.productos = await self.gateway.read_all(PRODUCTOS)
        except RemoteReadError as e:
            logger.error(f"Loading productos failed: {e}")
            self.notifications.error("Error", "No se pudieron cargar los productos.")
        return self.productos

    def find(self, identifier: str) -> Optional[Dict[str, Any]]:
        return next((p for p in self.productos if p.get(ID_FIELD) == identifier), None)

    # --- form ------------------------------------------------------------------------
    def editar(self, producto: Mapping[str, Any]) -> None:
        self.form.start_edit(producto)

    def cancelar(self) -> None:
        self.form.start_create()

    async def guardar(self, values: Optional[Mapping[str, Any]] = None) -> Optional[str]:
        if values:
            self.form.change_fields(values)
        identifier = await self.form.submit()
        if identifier is not None:
            await self.cargar_datos()
        return identifier

    async def eliminar(self, identifier: str) -> bool:
        try:
            await self.gateway.delete(PRODUCTOS, identifier)
        except RemoteWriteError as e:
            logger.error(f"Deleting producto {identifier} failed: {e}")
            self.notifications.error("Error", "No se pudo eliminar")
            return False
        self.notifications.alert("Eliminado")
        await self.cargar_datos()
        return True

    # --- bulk ------------------------------------------------------------------------
    def importaciones(self) -> Dict[str, str]:
        """Available import presets and their button labels."""
        return {key: config.label or key for key, config in self.import_presets.items()}

    async def importar(self, preset: str, picker: Optional[FilePicker] = None) -> Optional[ImportResult]:
        config = self.import_presets.get(preset)
        if config is None:
            self.notifications.error("Error", f"Importación '{preset}' no disponible.")
            return None
        try:
            result = await self.importer.import_collection(config, picker)
        except ImportCancelled as e:
            self.notifications.alert("Cancelado", str(e))
            return None
        except ImportHalted as e:
            self.notifications.error("Error", str(e) or "Falló la importación.")
            return None
        self.notifications.alert("Importación Completada", result.summary())
        return result

    async def exportar(self) -> Optional[ExportResult]:
        if self.export_config is None:
            self.notifications.error("Error", "Exportación no disponible.")
            return None
        try:
            result = await self.exporter.export(self.export_config)
        except RemoteReadError as e:
            logger.error(f"Export read failed: {e}")
            self.notifications.error("Error", "No se pudieron leer los datos para exportar.")
            return None
        if result.complete:
            self.notifications.alert("Exportación lista", "Datos copiados y listos para compartir.")
        else:
            problems = "; ".join(f"{sink}: {msg}" for sink, msg in result.errors.items())
            self.notifications.error("Exportación incompleta", problems)
        return result
