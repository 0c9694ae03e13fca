from fastapi import APIRouter, Body, Depends, HTTPException, Request

from tienda.api.deps import alert_cursor, get_screens, require_session, respond
from tienda.api.routes.productos import ProductoForm, form_values

router = APIRouter(prefix="/api/realtime/productos", dependencies=[Depends(require_session)])


@router.get("")
def listar(request: Request):
    screen = get_screens(request).realtime
    return {
        'loading': screen.lista.loading,
        'productos': screen.lista.items,
        'form': screen.form.snapshot(),
    }


@router.post("")
async def guardar(request: Request, payload: ProductoForm = Body(...)):
    screen = get_screens(request).realtime
    since = alert_cursor(request)
    identifier = await screen.guardar(form_values(screen.form, payload))
    if identifier is None:
        return respond(request, since, status_code=400, form=screen.form.snapshot())
    return respond(request, since, id=identifier)


@router.post("/cancel")
def cancelar(request: Request):
    screen = get_screens(request).realtime
    screen.cancelar()
    return {'form': screen.form.snapshot()}


@router.post("/{producto_id}/edit")
def editar(request: Request, producto_id: str):
    screen = get_screens(request).realtime
    producto = screen.lista.find(producto_id)
    if producto is None:
        raise HTTPException(status_code=404, detail="Producto no encontrado")
    screen.editar(producto)
    return {'form': screen.form.snapshot()}


@router.delete("/{producto_id}")
async def eliminar(request: Request, producto_id: str):
    screen = get_screens(request).realtime
    since = alert_cursor(request)
    ok = await screen.eliminar(producto_id)
    return respond(request, since, status_code=200 if ok else 502)
