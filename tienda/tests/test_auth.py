import unittest
from urllib.parse import parse_qs
import httpx
from tienda.events.notifications import NotificationCenter
from tienda.infra.auth_client import FirebaseAuthClient, MemoryAuthClient, auth_code_for
from tienda.screens.login import LoginScreen, login_message
from tienda.utilities.errors import AuthError


class FakeContext:
    def __init__(self, auth):
        self.auth = auth
        self.notifications = NotificationCenter()


class TestAuthCodes(unittest.TestCase):

    def test_rest_messages(self):
        self.assertEqual(auth_code_for("EMAIL_NOT_FOUND"), "auth/user-not-found")
        self.assertEqual(auth_code_for("TOO_MANY_ATTEMPTS_TRY_LATER : Access disabled"), "auth/too-many-requests")
        self.assertEqual(auth_code_for("SOMETHING_NEW"), "auth/internal-error")

    def test_messages(self):
        self.assertEqual(login_message("auth/wrong-password"), "Credenciales incorrectas.")
        self.assertEqual(login_message("auth/internal-error"), "Error inesperado. Intenta de nuevo.")


class TestFirebaseAuthClient(unittest.IsolatedAsyncioTestCase):

    def client(self, handler, **kwargs):
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        self.addAsyncCleanup(http.aclose)
        return FirebaseAuthClient("key123", client=http, **kwargs)

    async def test_sign_in(self):
        def handler(request):
            self.assertEqual(request.url.params["key"], "key123")
            return httpx.Response(200, json={"localId": "u1", "email": "ana@tienda.cr", "idToken": "tok",
                                             "refreshToken": "r", "expiresIn": "3600"})

        auth = self.client(handler)
        session = await auth.sign_in("ana@tienda.cr", "secreto")
        self.assertEqual((session.uid, session.id_token), ("u1", "tok"))
        self.assertEqual(await auth.id_token(), "tok")
        auth.sign_out()
        self.assertIsNone(await auth.id_token())

    async def test_rejected(self):
        auth = self.client(lambda request: httpx.Response(400, json={"error": {"message": "INVALID_PASSWORD"}}))
        with self.assertRaises(AuthError) as ctx:
            await auth.sign_in("ana@tienda.cr", "mal")
        self.assertEqual(ctx.exception.code, "auth/wrong-password")
        self.assertFalse(auth.signed_in)

    async def test_network_failure(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        with self.assertRaises(AuthError) as ctx:
            await self.client(handler).sign_in("ana@tienda.cr", "secreto")
        self.assertEqual(ctx.exception.code, "auth/network-request-failed")


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestTokenRefresh(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.refreshes = []
        self.refresh_response = httpx.Response(200, json={
            "id_token": "tok2", "refresh_token": "r2", "expires_in": "3600", "user_id": "u1"})

    def handler(self, request):
        if request.url.host == "securetoken.googleapis.com":
            self.refreshes.append(parse_qs(request.content.decode()))
            return self.refresh_response
        return httpx.Response(200, json={"localId": "u1", "email": "ana@tienda.cr", "idToken": "tok",
                                         "refreshToken": "r1", "expiresIn": "3600"})

    async def signed_in(self):
        http = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        self.addAsyncCleanup(http.aclose)
        auth = FirebaseAuthClient("key123", client=http, clock=self.clock)
        await auth.sign_in("ana@tienda.cr", "secreto")
        return auth

    async def test_fresh_token_is_reused(self):
        auth = await self.signed_in()
        self.clock.now += 3000
        self.assertEqual(await auth.id_token(), "tok")
        self.assertEqual(self.refreshes, [])

    async def test_expiring_token_is_refreshed(self):
        auth = await self.signed_in()
        self.clock.now += 3600 - 30
        self.assertEqual(await auth.id_token(), "tok2")
        self.assertEqual(self.refreshes, [{"grant_type": ["refresh_token"], "refresh_token": ["r1"]}])
        self.assertEqual(auth.session.refresh_token, "r2")
        self.assertEqual(auth.session.expires_at, self.clock.now + 3600)
        # the renewed token is good for another hour
        self.assertEqual(await auth.id_token(), "tok2")
        self.assertEqual(len(self.refreshes), 1)

    async def test_invalidated_token_is_refreshed(self):
        auth = await self.signed_in()
        auth.invalidate_token()
        self.assertEqual(await auth.id_token(), "tok2")
        self.assertEqual(len(self.refreshes), 1)

    async def test_rejected_refresh_ends_session(self):
        self.refresh_response = httpx.Response(400, json={"error": {"message": "TOKEN_EXPIRED"}})
        auth = await self.signed_in()
        self.clock.now += 7200
        with self.assertRaises(AuthError) as ctx:
            await auth.id_token()
        self.assertEqual(ctx.exception.code, "auth/user-token-expired")
        self.assertFalse(auth.signed_in)
        self.assertIsNone(await auth.id_token())

    async def test_memory_tokens_never_expire(self):
        auth = MemoryAuthClient({"ana@tienda.cr": "secreto"})
        await auth.sign_in("ana@tienda.cr", "secreto")
        self.assertEqual(await auth.id_token(), "local-token")


class TestLoginScreen(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.logged_in = []
        self.context = FakeContext(MemoryAuthClient({"ana@tienda.cr": "secreto"}))
        self.screen = LoginScreen(self.context, on_login_success=lambda: self.logged_in.append(True))

    async def test_empty_fields(self):
        self.assertFalse(await self.screen.login("", "secreto"))
        self.assertEqual(self.context.notifications.latest()["title"], "Campos incompletos")

    async def test_invalid_email_never_reaches_provider(self):
        self.assertFalse(await self.screen.login("ana@tienda", "secreto"))
        self.assertEqual(self.context.notifications.latest()["title"], "Email inválido")
        self.assertFalse(self.context.auth.signed_in)

    async def test_wrong_password(self):
        self.assertFalse(await self.screen.login("ana@tienda.cr", "otra"))
        self.assertEqual(self.context.notifications.latest()["message"], "Credenciales incorrectas.")
        self.assertEqual(self.logged_in, [])

    async def test_success_and_logout(self):
        self.assertTrue(await self.screen.login("ana@tienda.cr", "secreto"))
        self.assertEqual(self.logged_in, [True])
        self.screen.logout()
        self.assertFalse(self.context.auth.signed_in)
        self.assertEqual(self.context.notifications.latest()["title"], "Sesión cerrada")
