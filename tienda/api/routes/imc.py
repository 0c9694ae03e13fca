from typing import Optional, Union

from fastapi import APIRouter, Body, Depends, Request
from pydantic import BaseModel

from tienda.api.deps import alert_cursor, get_screens, require_session, respond

router = APIRouter(prefix="/api/imc", dependencies=[Depends(require_session)])


class ImcForm(BaseModel):
    nombre: Optional[str] = ""
    peso: Optional[Union[str, float]] = ""
    altura: Optional[Union[str, float]] = ""  # cm


@router.get("")
def historial(request: Request):
    screen = get_screens(request).imc
    return {
        'loading': screen.historial.loading,
        'registros': screen.registros(),
    }


@router.post("")
async def calcular(request: Request, payload: ImcForm = Body(...)):
    screen = get_screens(request).imc
    since = alert_cursor(request)
    identifier = await screen.calcular(payload.nombre, payload.peso, payload.altura)
    if identifier is None:
        return respond(request, since, status_code=400, form=screen.form.snapshot())
    return respond(request, since, id=identifier)
