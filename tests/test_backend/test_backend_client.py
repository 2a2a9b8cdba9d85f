"""Test the REST backend client."""

import json

import httpx
import pytest

from smarthome_dashboard.api.backend import BackendClient, UserRole
from smarthome_dashboard.api.base import BackendError
from smarthome_dashboard.api.config import BackendConfig
from smarthome_dashboard.api.state import AlertCategory


class RecordingBackend:
    """MockTransport handler returning canned responses per path."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.routes.get((request.method, request.url.path), (404, {"error": "Not found"}))
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def make_client(backend: RecordingBackend, token: str = None) -> BackendClient:
    config = BackendConfig(api_url="http://backend.test/api")
    return BackendClient(config, token=token, transport=httpx.MockTransport(backend))


class TestAuth:
    """Test authentication endpoints."""

    @pytest.mark.asyncio
    async def test_login_stores_token(self):
        backend = RecordingBackend({
            ("POST", "/api/auth/login"): (200, {
                "token": "abc", "user": {"id": 1, "username": "admin", "role": "ADMIN"},
            }),
            ("GET", "/api/auth/me"): (200, {"id": 1, "username": "admin", "role": "ADMIN"}),
        })
        async with make_client(backend) as client:
            result = await client.login("admin", "secret")
            assert result.user.role == UserRole.ADMIN
            assert client.token == "abc"
            assert json.loads(backend.last.content) == {"username": "admin", "password": "secret"}

            me = await client.me()
            assert me.username == "admin"
            assert backend.last.headers["Authorization"] == "Bearer abc"

    @pytest.mark.asyncio
    async def test_no_token_no_header(self):
        backend = RecordingBackend({("GET", "/api/auth/me"): (200, {"id": 2, "username": "lan"})})
        async with make_client(backend) as client:
            await client.me()
        assert "Authorization" not in backend.last.headers

    @pytest.mark.asyncio
    async def test_error_message_from_backend(self):
        backend = RecordingBackend({("POST", "/api/auth/login"): (401, {"error": "Invalid credentials"})})
        async with make_client(backend) as client:
            with pytest.raises(BackendError) as exc:
                await client.login("admin", "wrong")
        assert str(exc.value) == "Invalid credentials"
        assert exc.value.status_code == 401

    @pytest.mark.asyncio
    async def test_error_fallback_message(self):
        def handler(request):
            return httpx.Response(500, text="<html>oops</html>")

        config = BackendConfig(api_url="http://backend.test/api")
        async with BackendClient(config, transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(BackendError) as exc:
                await client.me()
        assert str(exc.value) == "Request failed"
        assert exc.value.status_code == 500

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        config = BackendConfig(api_url="http://backend.test/api")
        async with BackendClient(config, transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(BackendError) as exc:
                await client.me()
        assert exc.value.status_code is None


class TestResources:
    """Test alert, door and RFID endpoints."""

    @pytest.mark.asyncio
    async def test_get_alerts_with_filters(self):
        backend = RecordingBackend({("GET", "/api/alerts"): (200, {
            "alerts": [{"id": 1, "type": "gas", "level": "CRITICAL", "message": "Leak"}],
            "total": 1, "page": 2, "totalPages": 3,
        })})
        async with make_client(backend, token="t") as client:
            page = await client.get_alerts(page=2, limit=10, type="gas")

        assert page.alerts[0].type == AlertCategory.GAS
        assert page.total_pages == 3
        assert dict(backend.last.url.params) == {"page": "2", "limit": "10", "type": "gas"}

    @pytest.mark.asyncio
    async def test_get_alerts_without_filters(self):
        backend = RecordingBackend({("GET", "/api/alerts"): (200, {"alerts": [], "total": 0})})
        async with make_client(backend) as client:
            await client.get_alerts()
        assert backend.last.url.query == b""

    @pytest.mark.asyncio
    async def test_acknowledge_alert(self):
        backend = RecordingBackend({("PATCH", "/api/alerts/5/acknowledge"): (200, {"id": 5})})
        async with make_client(backend) as client:
            assert await client.acknowledge_alert(5) == {"id": 5}

    @pytest.mark.asyncio
    async def test_register_push_token(self):
        backend = RecordingBackend({("POST", "/api/push-tokens"): (201, {"ok": True})})
        async with make_client(backend) as client:
            await client.register_push_token("fcm-token", "android")
        assert json.loads(backend.last.content) == {"token": "fcm-token", "platform": "android"}

    @pytest.mark.asyncio
    async def test_door_history(self):
        backend = RecordingBackend({("GET", "/api/doors/history"): (200, {
            "logs": [{
                "id": 1, "event": "UNLOCK", "method": "RFID",
                "timestamp": "2024-01-01T12:00:00Z", "user": {"id": 2, "username": "lan"},
            }],
            "total": 1, "page": 1, "totalPages": 1,
        })})
        async with make_client(backend) as client:
            history = await client.get_door_history(event="UNLOCK")

        assert history.logs[0].user.username == "lan"
        assert dict(backend.last.url.params) == {"event": "UNLOCK"}

    @pytest.mark.asyncio
    async def test_rfid_card(self):
        backend = RecordingBackend({
            ("GET", "/api/doors/rfid/my-card"): (200, {
                "hasCard": True,
                "card": {"id": 4, "uid": "A1B2", "status": "ACTIVE", "createdAt": "2024-01-01T00:00:00Z"},
            }),
            ("POST", "/api/doors/rfid/report-lost"): (200, {
                "success": True, "card": {"id": 4, "uid": "A1B2", "username": "lan"}, "message": "Reported",
            }),
        })
        async with make_client(backend) as client:
            card = await client.get_my_rfid_card()
            report = await client.report_lost_card()

        assert card.has_card is True
        assert card.card.uid == "A1B2"
        assert report.success is True
        assert report.card.username == "lan"

    @pytest.mark.asyncio
    async def test_empty_success_body(self):
        backend = RecordingBackend({("PATCH", "/api/alerts/5/acknowledge"): (204, None)})
        async with make_client(backend) as client:
            assert await client.acknowledge_alert(5) is None

    @pytest.mark.asyncio
    async def test_invalid_success_body(self):
        def handler(request):
            return httpx.Response(200, text="not json")

        config = BackendConfig(api_url="http://backend.test/api")
        async with BackendClient(config, transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(BackendError) as exc:
                await client.me()
        assert str(exc.value) == "Request failed"


class TestUserAdministration:
    """Test user management endpoints."""

    @pytest.mark.asyncio
    async def test_list_users(self):
        backend = RecordingBackend({("GET", "/api/auth/users"): (200, [
            {"id": 1, "username": "admin", "role": "ADMIN"},
            {"id": 2, "username": "lan", "role": "USER"},
        ])})
        async with make_client(backend, token="t") as client:
            users = await client.list_users()

        assert [user.username for user in users] == ["admin", "lan"]
        assert users[0].role == UserRole.ADMIN

    @pytest.mark.asyncio
    async def test_register_with_role(self):
        backend = RecordingBackend({("POST", "/api/auth/register"): (201, {"id": 3, "username": "minh", "role": "ADMIN"})})
        async with make_client(backend, token="t") as client:
            user = await client.register("minh", "pw", role=UserRole.ADMIN)

        assert user.role == UserRole.ADMIN
        assert json.loads(backend.last.content) == {"username": "minh", "password": "pw", "role": "ADMIN"}

    @pytest.mark.asyncio
    async def test_update_user_role(self):
        backend = RecordingBackend({("PATCH", "/api/auth/users/2/role"): (200, {"id": 2, "role": "ADMIN"})})
        async with make_client(backend, token="t") as client:
            await client.update_user_role(2, UserRole.ADMIN)
        assert json.loads(backend.last.content) == {"role": "ADMIN"}

    @pytest.mark.asyncio
    async def test_delete_user(self):
        backend = RecordingBackend({("DELETE", "/api/auth/users/2"): (204, None)})
        async with make_client(backend, token="t") as client:
            assert await client.delete_user(2) is None
        assert backend.last.method == "DELETE"

    @pytest.mark.asyncio
    async def test_delete_user_forbidden(self):
        backend = RecordingBackend({("DELETE", "/api/auth/users/1"): (403, {"error": "Cannot delete yourself"})})
        async with make_client(backend, token="t") as client:
            with pytest.raises(BackendError) as exc:
                await client.delete_user(1)
        assert str(exc.value) == "Cannot delete yourself"
        assert exc.value.status_code == 403


class TestRfidAdministration:
    """Test enrollment, revocation and PIN endpoints."""

    @pytest.mark.asyncio
    async def test_users_rfid_status(self):
        backend = RecordingBackend({("GET", "/api/doors/users-rfid-status"): (200, [
            {
                "id": 2, "username": "lan", "role": "USER", "hasRfidCard": True,
                "rfidCard": {"id": 4, "uid": "A1B2", "status": "ACTIVE", "createdAt": "2024-01-01T00:00:00Z"},
            },
            {"id": 3, "username": "minh", "role": "USER", "hasRfidCard": False, "rfidCard": None},
        ])})
        async with make_client(backend, token="t") as client:
            users = await client.get_users_rfid_status()

        assert users[0].has_rfid_card is True
        assert users[0].rfid_card.uid == "A1B2"
        assert users[1].rfid_card is None

    @pytest.mark.asyncio
    async def test_enrollment_status(self):
        backend = RecordingBackend({("GET", "/api/doors/enrollment/status"): (200, {
            "active": True, "userId": 3, "username": "minh",
        })})
        async with make_client(backend, token="t") as client:
            status = await client.get_enrollment_status()

        assert status.active is True
        assert status.user_id == 3

    @pytest.mark.asyncio
    async def test_start_enrollment(self):
        backend = RecordingBackend({("POST", "/api/doors/enrollment/start"): (200, {
            "success": True, "username": "minh",
        })})
        async with make_client(backend, token="t") as client:
            result = await client.start_enrollment(3)

        assert result.username == "minh"
        assert json.loads(backend.last.content) == {"userId": 3, "confirmReplace": False}

    @pytest.mark.asyncio
    async def test_start_enrollment_requires_confirmation(self):
        backend = RecordingBackend({("POST", "/api/doors/enrollment/start"): (409, {
            "error": "User already has a card", "requireConfirmation": True,
        })})
        async with make_client(backend, token="t") as client:
            with pytest.raises(BackendError) as exc:
                await client.start_enrollment(2)

        assert exc.value.status_code == 409
        assert exc.value.context["body"]["requireConfirmation"] is True

    @pytest.mark.asyncio
    async def test_cancel_and_revoke(self):
        backend = RecordingBackend({
            ("POST", "/api/doors/enrollment/cancel"): (200, {"success": True}),
            ("POST", "/api/doors/rfid/revoke/2"): (200, {"success": True}),
        })
        async with make_client(backend, token="t") as client:
            await client.cancel_enrollment()
            await client.revoke_rfid(2)

        assert [request.url.path for request in backend.requests] == [
            "/api/doors/enrollment/cancel",
            "/api/doors/rfid/revoke/2",
        ]

    @pytest.mark.asyncio
    async def test_update_pin(self):
        backend = RecordingBackend({("PATCH", "/api/doors/pin"): (200, {"success": True})})
        async with make_client(backend, token="t") as client:
            await client.update_pin("4821")
        assert json.loads(backend.last.content) == {"pin": "4821"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("pin", ["123", "12345", "12a4", ""])
    async def test_update_pin_rejects_malformed(self, pin):
        backend = RecordingBackend({})
        async with make_client(backend, token="t") as client:
            with pytest.raises(ValueError):
                await client.update_pin(pin)
        assert backend.requests == []
