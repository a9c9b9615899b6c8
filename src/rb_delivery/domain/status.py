"""Delivery status machine.

pending -> in_progress | delivered | cancelled
in_progress -> delivered | cancelled
delivered and cancelled are terminal.
"""

from src.rb_common.enums import DeliveryStatus
from src.rb_common.errors import BadRequestError, InvalidStatusTransitionError

# Names used by older mobile clients
STATUS_ALIASES = {
    "in_transit": DeliveryStatus.IN_PROGRESS,
    "completed": DeliveryStatus.DELIVERED,
}

TRANSITIONS: dict[DeliveryStatus, frozenset[DeliveryStatus]] = {
    DeliveryStatus.PENDING: frozenset(
        {DeliveryStatus.IN_PROGRESS, DeliveryStatus.DELIVERED, DeliveryStatus.CANCELLED}
    ),
    DeliveryStatus.IN_PROGRESS: frozenset({DeliveryStatus.DELIVERED, DeliveryStatus.CANCELLED}),
    DeliveryStatus.DELIVERED: frozenset(),
    DeliveryStatus.CANCELLED: frozenset(),
}

LOCKED = frozenset({DeliveryStatus.DELIVERED, DeliveryStatus.CANCELLED})


def parse_status(value: str) -> DeliveryStatus:
    normalized = (value or "").strip().lower()
    if normalized in STATUS_ALIASES:
        return STATUS_ALIASES[normalized]
    try:
        return DeliveryStatus(normalized)
    except ValueError:
        raise BadRequestError(f"Invalid delivery status: {value!r}", "INVALID_STATUS") from None


def check_transition(current: DeliveryStatus, target: DeliveryStatus) -> None:
    if target not in TRANSITIONS[current]:
        raise InvalidStatusTransitionError(current.value, target.value)
