"""Product management on the real-time store: the list updates live on every device."""
import logging
from typing import Any, Mapping, Optional

from tienda.context import ServiceContext
from tienda.logic.forms.definitions import PRODUCTO_REALTIME_FORM
from tienda.logic.forms.session import FormSession
from tienda.logic.sync.live_list import LiveList
from tienda.utilities.constants import PRODUCTOS
from tienda.utilities.errors import RemoteWriteError

logger = logging.getLogger(__name__)


class ProductosRealtimeScreen:
    def __init__(self, context: ServiceContext):
        self.gateway = context.realtime
        self.notifications = context.notifications
        self.form = FormSession(PRODUCTO_REALTIME_FORM, context.realtime, context.notifications)
        self.lista = LiveList(context.realtime, PRODUCTOS)

    def mount(self) -> None:
        self.lista.start()

    def unmount(self) -> None:
        self.lista.stop()
        self.form.start_create()

    def editar(self, producto: Mapping[str, Any]) -> None:
        self.form.start_edit(producto)

    def cancelar(self) -> None:
        self.form.start_create()

    async def guardar(self, values: Optional[Mapping[str, Any]] = None) -> Optional[str]:
        if values:
            self.form.change_fields(values)
        return await self.form.submit()

    async def eliminar(self, identifier: str) -> bool:
        try:
            await self.gateway.delete(PRODUCTOS, identifier)
        except RemoteWriteError as e:
            logger.error(f"Deleting producto {identifier} failed: {e}")
            self.notifications.error("Error", "No se pudo eliminar")
            return False
        self.notifications.alert("Eliminado")
        return True
