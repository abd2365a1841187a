"""
Realtime Session Directory

Process-local registry of connected realtime clients and their rooms:

    owner:{owner_id}     - every dashboard of one restaurant
    order:{order_id}     - customers tracking one order
    customer:{phone}     - every device of one customer

Built once by the service container and injected into the WebSocket
endpoint and the notification fan-out. Nothing here is persisted; a
restart drops every session and clients simply rejoin.
"""

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Protocol

from qrmenu.core.exceptions import ValidationError

logger = logging.getLogger(__name__)


class Sender(Protocol):
    """Anything that can push a JSON message to one client (e.g. a WebSocket)."""

    async def send_json(self, data: Any) -> None:
        ...


class SessionRole(str, Enum):
    OWNER = "owner"
    CUSTOMER = "customer"


def owner_room(owner_id: str) -> str:
    return f"owner:{owner_id}"


def order_room(order_id: str) -> str:
    return f"order:{order_id}"


def customer_room(phone: str) -> str:
    return f"customer:{phone}"


@dataclass
class RealtimeSession:
    connection_id: str
    role: Optional[SessionRole] = None
    attrs: dict[str, str] = field(default_factory=dict)
    rooms: set[str] = field(default_factory=set)


class RealtimeDirectory:
    """In-memory connection, session and room bookkeeping."""

    def __init__(self):
        self._senders: dict[str, Sender] = {}
        self._sessions: dict[str, RealtimeSession] = {}
        self._rooms: dict[str, set[str]] = {}

    # =========================================================================
    # CONNECTIONS
    # =========================================================================

    def connect(self, sender: Sender, connection_id: Optional[str] = None) -> str:
        connection_id = connection_id or uuid.uuid4().hex
        self._senders[connection_id] = sender
        self._sessions[connection_id] = RealtimeSession(connection_id=connection_id)
        logger.info(f"✅ Client connected: {connection_id}")
        return connection_id

    def join(self, connection_id: str, role: str, attrs: dict[str, Any]) -> RealtimeSession:
        """
        Record the client's role and subscribe it to its rooms.

        Owners join their owner room; customers join both the order room
        and their phone room. Joining again replaces the previous rooms.
        """
        session = self._sessions.get(connection_id)
        if session is None:
            raise ValidationError("Unknown connection")

        try:
            role = SessionRole(role)
        except ValueError:
            raise ValidationError(f"Unknown realtime role: {role}")

        if role == SessionRole.OWNER:
            owner_id = attrs.get("owner_id")
            if not owner_id:
                raise ValidationError("owner:join requires ownerId")
            clean_attrs = {"owner_id": str(owner_id)}
            rooms = {owner_room(clean_attrs["owner_id"])}
        else:
            order_id, phone = attrs.get("order_id"), attrs.get("phone")
            if not order_id or not phone:
                raise ValidationError("customer:join requires orderId and phone")
            clean_attrs = {"order_id": str(order_id), "phone": str(phone)}
            rooms = {order_room(clean_attrs["order_id"]), customer_room(clean_attrs["phone"])}

        self._leave_rooms(session)
        session.role = role
        session.attrs = clean_attrs
        session.rooms = rooms
        for room in rooms:
            self._rooms.setdefault(room, set()).add(connection_id)

        logger.info(f"Connection {connection_id} joined as {role.value}: {sorted(rooms)}")
        return session

    def leave(self, connection_id: str) -> None:
        """Forget a connection entirely. Unknown ids are ignored."""
        session = self._sessions.pop(connection_id, None)
        self._senders.pop(connection_id, None)
        if session is None:
            return
        self._leave_rooms(session)
        role = session.role.value if session.role else "anonymous"
        logger.info(f"❌ {role} disconnected: {connection_id}")

    def _leave_rooms(self, session: RealtimeSession) -> None:
        for room in session.rooms:
            members = self._rooms.get(room)
            if members is None:
                continue
            members.discard(session.connection_id)
            if not members:
                del self._rooms[room]
        session.rooms = set()

    # =========================================================================
    # DELIVERY
    # =========================================================================

    async def broadcast(self, room: str, payload: dict, event: str = "notification") -> int:
        """
        Send ``{"event": event, "data": payload}`` to every member of a room.

        Returns how many connections received it. A connection whose send
        fails is dropped from the directory.
        """
        members = list(self._rooms.get(room, ()))
        delivered = 0
        dead_connections = []

        for connection_id in members:
            sender = self._senders.get(connection_id)
            if sender is None:
                dead_connections.append(connection_id)
                continue
            try:
                await sender.send_json({"event": event, "data": payload})
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping connection {connection_id} after failed send: {e}")
                dead_connections.append(connection_id)

        for connection_id in dead_connections:
            self.leave(connection_id)

        logger.debug(f"Broadcast {event} to {room}: {delivered}/{len(members)} delivered")
        return delivered

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def session(self, connection_id: str) -> Optional[RealtimeSession]:
        return self._sessions.get(connection_id)

    def room_members(self, room: str) -> set[str]:
        return set(self._rooms.get(room, ()))

    @property
    def connection_count(self) -> int:
        return len(self._senders)
