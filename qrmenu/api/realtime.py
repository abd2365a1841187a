"""
Realtime WebSocket endpoint.

Clients send JSON frames:

    {"event": "owner:join", "data": {"ownerId": "..."}}
    {"event": "customer:join", "data": {"orderId": "...", "phone": "..."}}
    {"event": "ping"}

and receive ``{"event": "notification", "data": {...}}`` frames pushed
by the notification fan-out.
"""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from qrmenu.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])

# Wire keys are camelCase, directory attrs are snake_case
JOIN_ATTRS = {"ownerId": "owner_id", "orderId": "order_id", "phone": "phone"}


@router.websocket("/ws")
async def realtime_endpoint(websocket: WebSocket):
    directory = websocket.app.state.services.directory
    client_host = websocket.client.host if websocket.client else "unknown"

    await websocket.accept()
    connection_id = directory.connect(websocket)
    logger.debug(f"WebSocket {connection_id} opened from {client_host}")

    try:
        while True:
            message = await websocket.receive_json()
            if not isinstance(message, dict):
                await websocket.send_json({"event": "error", "data": {"message": "Expected a JSON object"}})
                continue

            event = message.get("event")
            data = message.get("data") or {}

            if event == "ping":
                await websocket.send_json({"event": "pong"})
            elif event in ("owner:join", "customer:join"):
                role = event.split(":", 1)[0]
                attrs = {JOIN_ATTRS[key]: value for key, value in data.items() if key in JOIN_ATTRS}
                try:
                    session = directory.join(connection_id, role, attrs)
                except ValidationError as e:
                    await websocket.send_json({"event": "error", "data": {"message": e.message}})
                    continue
                await websocket.send_json({"event": "joined", "data": {"rooms": sorted(session.rooms)}})
            else:
                await websocket.send_json({"event": "error", "data": {"message": f"Unknown event: {event}"}})
    except WebSocketDisconnect:
        pass
    except ValueError as e:
        # receive_json on a non-JSON frame
        logger.warning(f"WebSocket {connection_id} sent invalid JSON: {e}")
        await websocket.close(code=1003)
    finally:
        directory.leave(connection_id)
