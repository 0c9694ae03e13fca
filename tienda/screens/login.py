"""Login screen: email/password sign-in with friendly error messages."""
import logging
from typing import Callable, Optional

from tienda.context import ServiceContext
from tienda.utilities.constants import AUTH_DEFAULT_MESSAGE, AUTH_MESSAGES
from tienda.utilities.errors import AuthError
from tienda.utilities.validators import is_filled, is_valid_email

logger = logging.getLogger(__name__)


def login_message(code: str) -> str:
    return AUTH_MESSAGES.get(code, AUTH_DEFAULT_MESSAGE)


class LoginScreen:
    def __init__(self, context: ServiceContext, on_login_success: Optional[Callable[[], None]] = None,
                 on_logout: Optional[Callable[[], None]] = None):
        self.auth = context.auth
        self.notifications = context.notifications
        self.on_login_success = on_login_success
        self.on_logout = on_logout
        self.loading = False

    async def login(self, email: str, password: str) -> bool:
        if not is_filled(email, password):
            self.notifications.error('Campos incompletos', 'Por favor completa ambos campos.')
            return False
        if not is_valid_email(email):
            self.notifications.error('Email inválido', 'Ingresa un correo electrónico válido.')
            return False

        self.loading = True
        try:
            await self.auth.sign_in(email.strip(), password)
        except AuthError as e:
            logger.info(f"Sign-in rejected ({e.code})")
            self.notifications.error('Error', login_message(e.code))
            return False
        finally:
            self.loading = False

        if self.on_login_success:
            self.on_login_success()
        return True

    def logout(self) -> None:
        self.auth.sign_out()
        if self.on_logout:
            self.on_logout()
        self.notifications.alert('Sesión cerrada')
