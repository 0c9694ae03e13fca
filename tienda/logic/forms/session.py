"""Form session controller.

One instance per screen. It holds the transient form values and the optional
identifier of the record being edited, and turns ``submit()`` into exactly
one ``create`` (no identifier) or ``update`` (identifier set) on the gateway.

States::

    idle --change_field/start_edit--> editing --submit--> submitting
      ^                                  ^                    |
      +----------- success --------------+---- failure -------+

On validation failure nothing is sent and the state does not change. On a
remote failure the values are kept so the user can retry without retyping.
Every outcome is reported as one notification.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from tienda.events.notifications import NotificationCenter
from tienda.infra.gateway import RemoteGateway
from tienda.utilities.constants import ID_FIELD
from tienda.utilities.errors import RemoteError, ValidationError

logger = logging.getLogger(__name__)

IDLE = "idle"
EDITING = "editing"
SUBMITTING = "submitting"

Message = Union[str, Callable[[Dict[str, Any]], str]]


def _field_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def default_from_record(fields: Tuple[str, ...]) -> Callable[[Mapping[str, Any]], Dict[str, str]]:
    def _from_record(record: Mapping[str, Any]) -> Dict[str, str]:
        return {name: _field_text(record.get(name)) for name in fields}
    return _from_record


@dataclass
class FormDefinition:
    """What a screen's form writes, where, and what the user is told."""
    collection: str
    fields: Tuple[str, ...]
    validate: Callable[[Dict[str, Any]], bool]
    build_record: Callable[[Dict[str, Any]], Dict[str, Any]]
    from_record: Optional[Callable[[Mapping[str, Any]], Dict[str, str]]] = None
    invalid_message: str = "Complete todos los campos."
    created_message: Message = "Registro guardado"
    updated_message: Message = "Registro actualizado"
    create_failed_message: str = "No se pudo guardar"
    update_failed_message: str = "No se pudo actualizar"

    def record_to_fields(self, record: Mapping[str, Any]) -> Dict[str, str]:
        convert = self.from_record or default_from_record(self.fields)
        return convert(record)


class FormSession:
    def __init__(self, definition: FormDefinition, gateway: RemoteGateway,
                 notifications: NotificationCenter):
        self.definition = definition
        self.gateway = gateway
        self.notifications = notifications
        self.fields: Dict[str, Any] = self._empty_fields()
        self.editing_id: Optional[str] = None
        self.state = IDLE
        self.last_error: Optional[Exception] = None

    def _empty_fields(self) -> Dict[str, Any]:
        return {name: "" for name in self.definition.fields}

    # --- state -------------------------------------------------------------------
    @property
    def loading(self) -> bool:
        return self.state == SUBMITTING

    @property
    def is_update(self) -> bool:
        return self.editing_id is not None

    def snapshot(self) -> Dict[str, Any]:
        return {
            'state': self.state,
            'fields': dict(self.fields),
            'editing_id': self.editing_id,
            'loading': self.loading,
        }

    def _reset(self) -> None:
        self.fields = self._empty_fields()
        self.editing_id = None
        self.state = IDLE

    # --- transitions ----------------------------------------------------------------
    def start_create(self) -> None:
        if self.state == SUBMITTING:
            logger.warning("start_create ignored while '%s' is submitting", self.definition.collection)
            return
        self._reset()

    def start_edit(self, record: Mapping[str, Any]) -> None:
        if self.state == SUBMITTING:
            logger.warning("start_edit ignored while '%s' is submitting", self.definition.collection)
            return
        identifier = record.get(ID_FIELD)
        if not identifier:
            raise ValueError("Cannot edit a record without an identifier")
        self.fields = {**self._empty_fields(), **self.definition.record_to_fields(record)}
        self.editing_id = str(identifier)
        self.state = EDITING

    def change_field(self, name: str, value: Any) -> bool:
        if self.state == SUBMITTING:
            logger.warning("change_field(%s) ignored while submitting", name)
            return False
        if name not in self.fields:
            raise KeyError(f"Unknown field '{name}' for form '{self.definition.collection}'")
        self.fields[name] = value
        self.state = EDITING
        return True

    def change_fields(self, values: Mapping[str, Any]) -> None:
        for name, value in values.items():
            self.change_field(name, value)

    # --- submit -----------------------------------------------------------------------
    def validate(self) -> bool:
        return bool(self.definition.validate(dict(self.fields)))

    async def submit(self) -> Optional[str]:
        """Validate then create or update. Returns the record identifier, or None on failure."""
        if self.state == SUBMITTING:
            logger.warning("submit ignored: '%s' is already submitting", self.definition.collection)
            return None

        d = self.definition
        try:
            if not self.validate():
                raise ValidationError(d.invalid_message)
            record = d.build_record(dict(self.fields))
        except ValueError as e:
            # pydantic's ValidationError is a ValueError too
            self.last_error = e if isinstance(e, ValidationError) else ValidationError(d.invalid_message)
            self.notifications.error("Error", d.invalid_message)
            return None

        previous_state = self.state
        self.state = SUBMITTING
        updating = self.editing_id is not None
        try:
            if updating:
                identifier = self.editing_id
                await self.gateway.update(d.collection, identifier, record)
            else:
                identifier = await self.gateway.create(d.collection, record)
        except RemoteError as e:
            self.state = EDITING
            self.last_error = e
            logger.error(f"Submit to '{d.collection}' failed: {e}")
            self.notifications.error("Error", d.update_failed_message if updating else d.create_failed_message)
            return None
        except BaseException:
            self.state = previous_state
            raise

        self.last_error = None
        self._reset()
        message = d.updated_message if updating else d.created_message
        self.notifications.alert("Éxito", message(record) if callable(message) else message)
        return identifier
