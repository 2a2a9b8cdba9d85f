"""Dashboard HTTP and WebSocket routes."""

import asyncio
from collections import deque
from typing import Any, Deque, Dict, List, Optional

from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect
from loguru import logger

from smarthome_dashboard.api.base import create_error
from smarthome_dashboard.api.base.base_errors import SERVICE_ERROR
from smarthome_dashboard.api.dashboard.dashboard_models import (
    ControlRequest,
    ControlResponse,
    UnreadResponse,
)
from smarthome_dashboard.api.dashboard.dashboard_service import DashboardService
from smarthome_dashboard.api.notifications import Toast
from smarthome_dashboard.api.state import StateSnapshot

router = APIRouter(tags=["dashboard"])

# Per-client backlog of toasts and pongs
MAX_PENDING_MESSAGES = 100


def get_service(request: Request) -> DashboardService:
    """Get the dashboard service from app state."""
    service = getattr(request.app.state, "service", None)
    if service is None or not service.is_running:
        raise create_error(
            message="Dashboard service not running",
            status_code=SERVICE_ERROR,
            context={"service": "dashboard"}
        )
    return service


def _state_message(snapshot: StateSnapshot) -> Dict[str, Any]:
    return {"type": "state", **snapshot.model_dump(mode="json")}


def _toast_message(toast: Toast) -> Dict[str, Any]:
    return {"type": "toast", **toast.model_dump(mode="json")}


class Outbox:
    """Outgoing messages for one WebSocket client.

    Only the newest state snapshot is kept, so a slow client never falls
    behind on state. Other messages are held up to ``maxlen``, oldest
    dropped first.
    """

    def __init__(self, maxlen: int = MAX_PENDING_MESSAGES):
        self._state: Optional[StateSnapshot] = None
        self._messages: Deque[Dict[str, Any]] = deque()
        self._maxlen = maxlen
        self._ready = asyncio.Event()

    def __len__(self) -> int:
        return len(self._messages) + (self._state is not None)

    def put_state(self, snapshot: StateSnapshot) -> None:
        self._state = snapshot
        self._ready.set()

    def put(self, message: Dict[str, Any]) -> None:
        if len(self._messages) >= self._maxlen:
            dropped = self._messages.popleft()
            logger.warning(f"WebSocket client backlog full, dropping {dropped.get('type')} message")
        self._messages.append(message)
        self._ready.set()

    async def get(self) -> Dict[str, Any]:
        """Next message to send; a pending snapshot goes first."""
        while self._state is None and not self._messages:
            self._ready.clear()
            await self._ready.wait()
        if self._state is not None:
            snapshot, self._state = self._state, None
            return _state_message(snapshot)
        return self._messages.popleft()


@router.get("/state")
async def get_state(service: DashboardService = Depends(get_service)) -> Dict[str, Any]:
    """Current connection flag, devices and sensors."""
    return service.snapshot().model_dump(mode="json")


@router.get("/devices")
async def list_devices(service: DashboardService = Depends(get_service)) -> List[Dict[str, Any]]:
    """Device catalog."""
    return [device.model_dump(mode="json") for device in service.devices()]


@router.post("/devices/{device_id}/control", response_model=ControlResponse)
async def control_device(
    device_id: str,
    request: ControlRequest,
    service: DashboardService = Depends(get_service)
) -> ControlResponse:
    """Send an on/off command. Unknown devices yield 404."""
    success = service.control_device(device_id, request.action.value, request.color)
    return ControlResponse(success=success)


@router.get("/alerts/unread", response_model=UnreadResponse)
async def get_unread(service: DashboardService = Depends(get_service)) -> UnreadResponse:
    return UnreadResponse(unread=service.unread)


@router.post("/alerts/unread/reset", response_model=UnreadResponse)
async def reset_unread(service: DashboardService = Depends(get_service)) -> UnreadResponse:
    """Mark every alert read."""
    service.reset_unread()
    return UnreadResponse(unread=service.unread)


@router.websocket("/ws")
async def dashboard_ws(websocket: WebSocket):
    """Push state snapshots and toasts to a client."""
    service = getattr(websocket.app.state, "service", None)
    await websocket.accept()
    if service is None or not service.is_running:
        await websocket.close(code=1013)  # Try again later
        return

    outbox = Outbox()
    outbox.put_state(service.snapshot())
    unsubscribes = [
        service.store.subscribe(outbox.put_state),
        service.notifications.toasts.subscribe(lambda toast: outbox.put(_toast_message(toast))),
    ]

    async def sender() -> None:
        while True:
            await websocket.send_json(await outbox.get())

    async def receiver() -> None:
        while True:
            data = await websocket.receive_json()
            if isinstance(data, dict) and data.get("type") == "ping":
                outbox.put({"type": "pong"})

    tasks = [asyncio.create_task(sender()), asyncio.create_task(receiver())]
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            error = task.exception()
            if isinstance(error, WebSocketDisconnect):
                logger.info("Dashboard WebSocket disconnected")
            elif error is not None:
                logger.error(f"Dashboard WebSocket error: {error}")
    finally:
        for unsubscribe in unsubscribes:
            unsubscribe()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
