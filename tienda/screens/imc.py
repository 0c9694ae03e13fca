"""IMC calculator with a shared, live history (newest first)."""
from typing import Any, Dict, List, Optional

from tienda.context import ServiceContext
from tienda.logic.forms.definitions import IMC_FORM
from tienda.logic.forms.session import FormSession
from tienda.logic.imc.classification import band_color
from tienda.logic.sync.live_list import LiveList
from tienda.utilities.constants import IMC_REGISTROS


class CalculadoraImcScreen:
    def __init__(self, context: ServiceContext):
        self.form = FormSession(IMC_FORM, context.realtime, context.notifications)
        self.historial = LiveList(context.realtime, IMC_REGISTROS, sort_field="fecha")

    def mount(self) -> None:
        self.historial.start()

    def unmount(self) -> None:
        self.historial.stop()
        self.form.start_create()

    async def calcular(self, nombre: Any, peso: Any, altura: Any) -> Optional[str]:
        """Fill the form, compute the IMC and save it. Returns the new record id."""
        self.form.change_fields({"nombre": nombre, "peso": peso, "altura": altura})
        return await self.form.submit()

    def registros(self) -> List[Dict[str, Any]]:
        return [{**r, "color": band_color(r.get("clasificacion", ""))} for r in self.historial.items]
