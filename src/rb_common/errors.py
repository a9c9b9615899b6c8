"""Unified error codes and custom exceptions.

Every error carries a stable string code, a human message and the HTTP
status it maps to. Kind bases (BadRequestError, NotFoundError, ...) fix the
status; subclasses fix the code.
"""

from typing import Any


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: str,
        message: str,
        http_status: int = 500,
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.details = details
        super().__init__(message)


# --- Kinds ---

class BadRequestError(AppError):
    def __init__(self, message: str = "Bad request", code: str = "BAD_REQUEST") -> None:
        super().__init__(code, message, 400)


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Unauthorized", code: str = "UNAUTHORIZED") -> None:
        super().__init__(code, message, 401)


class ForbiddenError(AppError):
    def __init__(self, message: str = "Forbidden", code: str = "FORBIDDEN") -> None:
        super().__init__(code, message, 403)


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found", code: str = "NOT_FOUND") -> None:
        super().__init__(code, message, 404)


class ConflictError(AppError):
    def __init__(self, message: str = "Conflict", code: str = "CONFLICT") -> None:
        super().__init__(code, message, 409)


class ValidationError(AppError):
    def __init__(
        self,
        message: str = "Validation failed",
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__("VALIDATION_ERROR", message, 422, details)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__("INTERNAL_ERROR", detail, 500)


# --- Auth/User ---

class InvalidCredentialsError(UnauthorizedError):
    def __init__(self) -> None:
        super().__init__("Invalid email or password")


class InvalidTokenError(UnauthorizedError):
    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message, "INVALID_TOKEN")


class AccountDisabledError(UnauthorizedError):
    def __init__(self) -> None:
        super().__init__("Account is disabled")


class InsufficientRoleError(ForbiddenError):
    def __init__(self) -> None:
        super().__init__("Insufficient permissions")


class EmailExistsError(ConflictError):
    def __init__(self) -> None:
        super().__init__("User with this email already exists", "DUPLICATE_EMAIL")


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: str) -> None:
        super().__init__(f"User not found: {user_id}")


class CannotDeleteSelfError(BadRequestError):
    def __init__(self) -> None:
        super().__init__("You cannot delete your own account", "CANNOT_DELETE_SELF")


# --- Clients / Products ---

class ClientNotFoundError(NotFoundError):
    def __init__(self, client_id: str) -> None:
        super().__init__(f"Client not found: {client_id}")


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: str) -> None:
        super().__init__(f"Product not found: {product_id}")


class CircuitNotFoundError(NotFoundError):
    def __init__(self, circuit_id: str) -> None:
        super().__init__(f"Circuit not found: {circuit_id}")


class PlanningNotFoundError(NotFoundError):
    def __init__(self, planning_id: str) -> None:
        super().__init__(f"Planning not found: {planning_id}")


class PlanningExistsError(ConflictError):
    def __init__(self) -> None:
        super().__init__("Planning already exists for this commercial and date", "PLANNING_EXISTS")


class DuplicateCodeError(ConflictError):
    def __init__(self, entity: str, code: str) -> None:
        super().__init__(f"{entity} with code {code} already exists", "DUPLICATE_CODE")


class InvalidAmountError(BadRequestError):
    def __init__(self, message: str = "Amount must be a non-negative integer") -> None:
        super().__init__(message, "INVALID_AMOUNT")


# --- Deliveries ---

class DeliveryNotFoundError(NotFoundError):
    def __init__(self, delivery_id: str) -> None:
        super().__init__(f"Delivery not found: {delivery_id}")


class UnknownProductLineError(BadRequestError):
    def __init__(self, product_id: str) -> None:
        super().__init__(f"Product {product_id} not found", "UNKNOWN_PRODUCT")


class NoProductLinesError(BadRequestError):
    def __init__(self) -> None:
        super().__init__(
            "Cannot mark as delivered: no products on this delivery", "NO_PRODUCT_LINES"
        )


class InsufficientStockError(BadRequestError):
    def __init__(self, product_id: str, requested: int) -> None:
        super().__init__(
            f"Insufficient stock for product {product_id}: requested {requested}",
            "INSUFFICIENT_STOCK",
        )


class InvalidStatusTransitionError(BadRequestError):
    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            f"Cannot move delivery from {current} to {target}", "INVALID_STATUS_TRANSITION"
        )


class DeliveryLockedError(BadRequestError):
    def __init__(self, status: str) -> None:
        super().__init__(f"Delivery in status {status} can no longer be modified", "DELIVERY_LOCKED")


# --- Payments ---

class PaymentNotFoundError(NotFoundError):
    def __init__(self, payment_id: str) -> None:
        super().__init__(f"Payment not found: {payment_id}")


class AmountExceedsDebtError(BadRequestError):
    def __init__(self, amount: str, debt: str) -> None:
        super().__init__(f"Amount ({amount}) exceeds client debt ({debt})", "AMOUNT_EXCEEDS_DEBT")


class PaymentCancelledError(BadRequestError):
    def __init__(self, payment_id: str) -> None:
        super().__init__(f"Payment {payment_id} is cancelled", "PAYMENT_CANCELLED")


# --- Work sessions ---

class ActiveSessionExistsError(ConflictError):
    def __init__(self) -> None:
        super().__init__("Active session already exists", "ACTIVE_SESSION_ALREADY_EXISTS")


class NoActiveSessionError(NotFoundError):
    def __init__(self, message: str = "No active session") -> None:
        super().__init__(message, "NO_ACTIVE_SESSION")


class NoActiveSessionForExpenseError(BadRequestError):
    def __init__(self) -> None:
        super().__init__("No active session. Start a session first.", "NO_ACTIVE_SESSION")


class SessionNotActiveError(BadRequestError):
    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session {session_id} not found or not active", "SESSION_NOT_ACTIVE")


class InvalidEndTimeError(BadRequestError):
    def __init__(self) -> None:
        super().__init__("End time cannot be before the session start time", "INVALID_END_TIME")


class SessionNotFoundError(NotFoundError):
    def __init__(self) -> None:
        super().__init__("Session not found")


class SessionForbiddenError(ForbiddenError):
    def __init__(self) -> None:
        super().__init__("You do not have access to this session")


class InvalidDeliveryTypeError(BadRequestError):
    def __init__(self, value: object) -> None:
        super().__init__(
            f"Delivery type must be CASH or CREDIT, got {value!r}", "INVALID_DELIVERY_TYPE"
        )


class InvalidPaymentMethodError(BadRequestError):
    def __init__(self, value: object) -> None:
        super().__init__(f"Unsupported payment method: {value!r}", "INVALID_PAYMENT_METHOD")


class ExpenseLabelRequiredError(BadRequestError):
    def __init__(self) -> None:
        super().__init__("Expense label is required", "LABEL_REQUIRED")
