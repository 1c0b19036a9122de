"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/Identity
  2xxx: Cart
  3xxx: Quote request
  4xxx: Quote
  5xxx: Order
  9xxx: System

Race losses (3002, 4003) carry a refresh hint: they are an expected outcome of
concurrent bidding, not a failure of the caller's input.
"""

NO_LONGER_AVAILABLE = "This option is no longer available, please refresh"


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


class ValidationError(AppError):
    """Malformed input. Not retried automatically."""

    def __init__(self, detail: str, code: int = 9003) -> None:
        super().__init__(code, detail, 422)


class NotFoundError(AppError):
    def __init__(self, entity: str, entity_id: str, code: int = 9004) -> None:
        super().__init__(code, f"{entity} not found: {entity_id}", 404)


class ForbiddenError(AppError):
    def __init__(self, detail: str = "Forbidden", code: int = 1003) -> None:
        super().__init__(code, detail, 403)


# --- 1xxx: Auth/Identity ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401)


class RoleRequiredError(ForbiddenError):
    def __init__(self, role: str) -> None:
        super().__init__(f"Role required: {role}", code=1002)


# --- 2xxx: Cart ---

class InvalidGroupError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(2001, f"Invalid seller group: {detail}", 422)


class SellerGroupNotInCartError(AppError):
    def __init__(self, seller_id: str) -> None:
        super().__init__(2002, f"No cart lines for seller {seller_id}", 422)


# --- 3xxx: Quote request ---

class QuoteRequestNotFoundError(NotFoundError):
    def __init__(self, request_id: str) -> None:
        super().__init__("Quote request", request_id, code=3001)


class RequestNotOpenError(AppError):
    def __init__(self, request_id: str) -> None:
        super().__init__(3002, f"{NO_LONGER_AVAILABLE} (request {request_id} is closed)", 409)


class DuplicateOpenRequestError(AppError):
    def __init__(self, seller_id: str, request_id: str) -> None:
        super().__init__(
            3003,
            f"An open quote request already exists for seller {seller_id}: {request_id}",
            409,
        )


# --- 4xxx: Quote ---

class QuoteNotFoundError(NotFoundError):
    def __init__(self, quote_id: str) -> None:
        super().__init__("Quote", quote_id, code=4001)


class InvalidBidError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4002, f"Invalid bid: {detail}", 422)


class QuoteNoLongerValidError(AppError):
    def __init__(self, quote_id: str) -> None:
        super().__init__(4003, f"{NO_LONGER_AVAILABLE} (quote {quote_id})", 409)


# --- 5xxx: Order ---

class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: str) -> None:
        super().__init__("Order", order_id, code=5001)


class InvalidTransitionError(AppError):
    def __init__(self, current: str, target: str) -> None:
        super().__init__(5002, f"Cannot move order from {current} to {target}", 422)


class IncompleteConfirmationError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(5003, f"Incomplete delivery confirmation: {detail}", 422)


class ConfirmationCodeMismatchError(AppError):
    def __init__(self) -> None:
        super().__init__(5004, "Delivery confirmation code does not match", 422)

