from conftest import PASSWORD, FakeBackend
from portal.api.client import PortalAPIClient
from portal.api.models import Doctor, RegisterRequest
from portal.stores import AuthStore


async def test_login_success(client: PortalAPIClient) -> None:
    store = AuthStore(client)

    result = await store.login("house@example.com", PASSWORD)

    assert result.success is True
    assert store.is_authenticated is True
    assert store.user is not None
    assert store.user.username == "house"
    assert store.is_loading is False


async def test_login_failure_uses_server_message(client: PortalAPIClient) -> None:
    store = AuthStore(client)

    result = await store.login("house@example.com", "wrong")

    assert result.success is False
    assert result.error == "Invalid credentials"
    assert store.error == "Invalid credentials"
    assert store.is_authenticated is False


async def test_login_failure_without_message_uses_fallback(
    client: PortalAPIClient,
    backend: FakeBackend,
) -> None:
    backend.fail("POST", "auth/login", 500, None)
    store = AuthStore(client)

    result = await store.login("house@example.com", PASSWORD)

    assert result.error == "Login failed. Please try again."


async def test_register(client: PortalAPIClient) -> None:
    store = AuthStore(client)

    result = await store.register(
        RegisterRequest(
            first_name="Lisa",
            last_name="Cuddy",
            email="cuddy@example.com",
            password="princeton-1",
            phone="+15550177",
        ),
    )

    assert result.success is True
    assert store.user is not None
    assert store.user.email == "cuddy@example.com"


async def test_logout_clears_state_even_when_request_fails(
    client: PortalAPIClient,
    backend: FakeBackend,
) -> None:
    store = AuthStore(client)
    await store.login("house@example.com", PASSWORD)
    backend.fail("POST", "auth/logout", 500, None)

    await store.logout()

    assert store.user is None
    assert store.is_authenticated is False
    assert store.is_loading is False


async def test_check_auth_restores_user(logged_in_client: PortalAPIClient) -> None:
    store = AuthStore(logged_in_client)

    await store.check_auth()

    assert store.is_authenticated is True
    assert store.user is not None
    assert store.user.id == "d1"
    assert store.is_checking_auth is False


async def test_check_auth_logs_out_on_401(client: PortalAPIClient) -> None:
    store = AuthStore(client)
    store.set_user(Doctor(id="d1", email="house@example.com"))

    await store.check_auth()

    assert store.user is None
    assert store.is_authenticated is False


async def test_check_auth_keeps_user_on_server_error(
    logged_in_client: PortalAPIClient,
    backend: FakeBackend,
) -> None:
    store = AuthStore(logged_in_client)
    await store.check_auth()
    backend.fail("GET", "auth/profile", 503, '{"message": "maintenance"}')

    await store.check_auth()

    assert store.is_authenticated is True
    assert store.user is not None
    assert store.is_checking_auth is False
