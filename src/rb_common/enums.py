"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class Role(str, Enum):
    ADMIN = "ADMIN"
    COMMERCIAL = "COMMERCIAL"
    DELIVERY = "DELIVERY"


class ClientType(str, Enum):
    MECHANIC = "mechanic"
    CAR_WASH = "car_wash"
    HARDWARE = "hardware"


class Segment(str, Enum):
    PREMIUM = "PREMIUM"
    STANDARD = "STANDARD"
    WHOLESALE = "WHOLESALE"
    RETAIL = "RETAIL"


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CHECK = "check"
    TRANSFER = "transfer"
    CARD = "card"
    OTHER = "other"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SessionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ENDED = "ENDED"


class SessionDeliveryType(str, Enum):
    """How a delivery was settled: CASH credits cash collected, CREDIT credits credit sales."""
    CASH = "CASH"
    CREDIT = "CREDIT"


class SessionPaymentMethod(str, Enum):
    CASH = "CASH"
    TRANSFER = "TRANSFER"
    CHEQUE = "CHEQUE"


class PlanningStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"


class StopAction(str, Enum):
    DELIVERY = "delivery"
    PAYMENT = "payment"
    TASK = "task"
