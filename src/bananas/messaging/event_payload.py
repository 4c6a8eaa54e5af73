"""Wire payload shaping for ServiceEvents.

Every game event sent to a client is tagged with the room it belongs to,
because one connection may sit in several rooms.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from bananas.logic.events import ServiceEvent


def service_event_payload(event: ServiceEvent, room_id: str) -> dict[str, Any]:
    """Return the wire-format dict for a ServiceEvent payload.

    Shape: {"type": event.event, "room_id": room_id, **data_fields} with the
    internal-only fields ("type" and "target" on the domain model) excluded.
    """
    return {
        "type": event.event.value,
        "room_id": room_id,
        **event.data.model_dump(mode="json", exclude={"type", "target"}),
    }
