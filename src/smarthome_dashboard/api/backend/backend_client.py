"""REST backend client."""

from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from smarthome_dashboard.api.base import BackendError
from smarthome_dashboard.api.config.config_models import BackendConfig
from smarthome_dashboard.api.backend.backend_models import (
    AlertPage,
    DoorHistoryPage,
    EnrollmentStart,
    EnrollmentStatus,
    LoginResponse,
    LostCardReport,
    MyRfidCard,
    User,
    UserRfidStatus,
    UserRole,
)

DEFAULT_ERROR = "Request failed"


class BackendClient:
    """Bearer-token JSON client for the home automation backend.

    Usage:
        async with BackendClient(config) as client:
            await client.login("admin", "secret")
            page = await client.get_alerts(limit=20)
    """

    def __init__(
        self,
        config: Optional[BackendConfig] = None,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self._config = config or BackendConfig()
        self._token = token
        self._client = httpx.AsyncClient(
            base_url=self._config.api_url,
            timeout=self._config.timeout_s,
            transport=transport,
        )

    @property
    def token(self) -> Optional[str]:
        """Current bearer token, set by login()."""
        return self._token

    @token.setter
    def token(self, value: Optional[str]) -> None:
        self._token = value

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """Send one request and return the decoded JSON body, None if it is empty.

        Raises:
            BackendError: If the request fails or the backend answers non-2xx
        """
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        try:
            response = await self._client.request(method, endpoint, json=json, params=params, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"{method} {endpoint} failed: {e}")
            raise BackendError(DEFAULT_ERROR, context={"endpoint": endpoint, "error": str(e)}) from e

        if not response.is_success:
            message = DEFAULT_ERROR
            context: Dict[str, Any] = {"endpoint": endpoint}
            try:
                body = response.json()
                if isinstance(body, dict):
                    context["body"] = body
                    if body.get("error"):
                        message = str(body["error"])
            except ValueError:
                pass
            logger.warning(f"{method} {endpoint} -> {response.status_code}: {message}")
            raise BackendError(message, status_code=response.status_code, context=context)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"{method} {endpoint} returned invalid JSON: {e}")
            raise BackendError(DEFAULT_ERROR, status_code=response.status_code, context={"endpoint": endpoint}) from e

    # Auth

    async def login(self, username: str, password: str) -> LoginResponse:
        """Authenticate and keep the returned token for later requests."""
        data = await self._request("POST", "/auth/login", json={"username": username, "password": password})
        result = LoginResponse(**data)
        self._token = result.token
        return result

    async def register(self, username: str, password: str, role: Optional[UserRole] = None) -> User:
        """Create an account; admins pass ``role`` when adding users."""
        body = {"username": username, "password": password}
        if role is not None:
            body["role"] = UserRole(role).value
        data = await self._request("POST", "/auth/register", json=body)
        return User(**data)

    async def me(self) -> User:
        data = await self._request("GET", "/auth/me")
        return User(**data)

    # User administration

    async def list_users(self) -> List[User]:
        data = await self._request("GET", "/auth/users")
        return [User(**user) for user in data or []]

    async def update_user_role(self, user_id: int, role: UserRole) -> Optional[Dict[str, Any]]:
        return await self._request("PATCH", f"/auth/users/{user_id}/role", json={"role": UserRole(role).value})

    async def delete_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        return await self._request("DELETE", f"/auth/users/{user_id}")

    # Alerts

    async def get_alerts(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        type: Optional[str] = None
    ) -> AlertPage:
        data = await self._request("GET", "/alerts", params={"page": page, "limit": limit, "type": type})
        return AlertPage(**data)

    async def acknowledge_alert(self, alert_id: int) -> Optional[Dict[str, Any]]:
        return await self._request("PATCH", f"/alerts/{alert_id}/acknowledge")

    # Push tokens

    async def register_push_token(self, token: str, platform: str = "web") -> Optional[Dict[str, Any]]:
        return await self._request("POST", "/push-tokens", json={"token": token, "platform": platform})

    # Door history and RFID

    async def get_door_history(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        event: Optional[str] = None
    ) -> DoorHistoryPage:
        data = await self._request(
            "GET", "/doors/history", params={"page": page, "limit": limit, "event": event or None}
        )
        return DoorHistoryPage(**data)

    async def get_my_rfid_card(self) -> MyRfidCard:
        data = await self._request("GET", "/doors/rfid/my-card")
        return MyRfidCard(**data)

    async def report_lost_card(self) -> LostCardReport:
        data = await self._request("POST", "/doors/rfid/report-lost")
        return LostCardReport(**data)

    # RFID administration and door PIN

    async def get_users_rfid_status(self) -> List[UserRfidStatus]:
        data = await self._request("GET", "/doors/users-rfid-status")
        return [UserRfidStatus(**user) for user in data or []]

    async def get_enrollment_status(self) -> EnrollmentStatus:
        data = await self._request("GET", "/doors/enrollment/status")
        return EnrollmentStatus(**(data or {}))

    async def start_enrollment(self, user_id: int, confirm_replace: bool = False) -> EnrollmentStart:
        """Ask the door controller to enroll the next scanned card for a user.

        A user who already has a card is refused with status 409 and
        ``requireConfirmation`` in the error body until ``confirm_replace``
        is set.

        Raises:
            BackendError: If the backend refuses the enrollment
        """
        data = await self._request(
            "POST", "/doors/enrollment/start", json={"userId": user_id, "confirmReplace": confirm_replace}
        )
        return EnrollmentStart(**(data or {}))

    async def cancel_enrollment(self) -> Optional[Dict[str, Any]]:
        return await self._request("POST", "/doors/enrollment/cancel")

    async def revoke_rfid(self, user_id: int) -> Optional[Dict[str, Any]]:
        return await self._request("POST", f"/doors/rfid/revoke/{user_id}")

    async def update_pin(self, pin: str) -> Optional[Dict[str, Any]]:
        """Set the 4-digit door keypad PIN.

        Raises:
            ValueError: If ``pin`` is not exactly four digits
            BackendError: If the backend rejects the change
        """
        if len(pin) != 4 or not pin.isdigit():
            raise ValueError("PIN must be exactly 4 digits")
        return await self._request("PATCH", "/doors/pin", json={"pin": pin})
