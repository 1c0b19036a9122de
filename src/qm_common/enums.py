"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class Role(str, Enum):
    BUYER = "BUYER"
    SELLER = "SELLER"
    PROVIDER = "PROVIDER"
    ADMIN = "ADMIN"


class RequestState(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    EXPIRED = "EXPIRED"


class CloseReason(str, Enum):
    """Why a quote request left OPEN: acceptance or the clock."""
    ACCEPTED = "ACCEPTED"
    EXPIRED = "EXPIRED"


class QuoteState(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


class OrderStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    PICKED_UP = "PICKED_UP"
    IN_TRANSIT = "IN_TRANSIT"
    ARRIVED = "ARRIVED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class Urgency(str, Enum):
    NORMAL = "NORMAL"
    URGENT = "URGENT"


class PaymentMethod(str, Enum):
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY"
    BANK_TRANSFER = "BANK_TRANSFER"
    MOBILE_PAYMENT = "MOBILE_PAYMENT"


class QuoteSort(str, Enum):
    FEE = "fee"
    RATING = "rating"


class NotifyEvent(str, Enum):
    QUOTE_SUBMITTED = "QUOTE_SUBMITTED"
    QUOTE_ACCEPTED = "QUOTE_ACCEPTED"
    QUOTE_REJECTED = "QUOTE_REJECTED"
    REQUEST_EXPIRED = "REQUEST_EXPIRED"
    ORDER_CREATED = "ORDER_CREATED"
    ORDER_STATUS_CHANGED = "ORDER_STATUS_CHANGED"
