"""Order fulfillment state machine with role-scoped transition rights.

    CONFIRMED ─seller→ PROCESSING ─seller|provider→ SHIPPED | PICKED_UP
        ─provider→ IN_TRANSIT ─provider→ ARRIVED ─provider (+confirmation)→ DELIVERED

    CONFIRMED | PROCESSING ─buyer|seller (+reason)→ CANCELLED

Every move is a single step; anything not in the table is an invalid
transition. Party membership is derived from the order itself, never from
caller-supplied fields.
"""
from enum import Enum

from src.qm_common.enums import OrderStatus
from src.qm_common.errors import (
    ForbiddenError,
    IncompleteConfirmationError,
    InvalidTransitionError,
)
from src.qm_order.domain.models import Order

MIN_CONFIRMATION_CODE_LENGTH = 3


class Party(str, Enum):
    BUYER = "BUYER"
    SELLER = "SELLER"
    PROVIDER = "PROVIDER"


_S = OrderStatus
_P = Party

TRANSITIONS: dict[tuple[OrderStatus, OrderStatus], frozenset[Party]] = {
    (_S.CONFIRMED, _S.PROCESSING): frozenset({_P.SELLER}),
    (_S.PROCESSING, _S.SHIPPED): frozenset({_P.SELLER, _P.PROVIDER}),
    (_S.PROCESSING, _S.PICKED_UP): frozenset({_P.SELLER, _P.PROVIDER}),
    (_S.SHIPPED, _S.IN_TRANSIT): frozenset({_P.PROVIDER}),
    (_S.PICKED_UP, _S.IN_TRANSIT): frozenset({_P.PROVIDER}),
    (_S.IN_TRANSIT, _S.ARRIVED): frozenset({_P.PROVIDER}),
    (_S.ARRIVED, _S.DELIVERED): frozenset({_P.PROVIDER}),
    (_S.CONFIRMED, _S.CANCELLED): frozenset({_P.BUYER, _P.SELLER}),
    (_S.PROCESSING, _S.CANCELLED): frozenset({_P.BUYER, _P.SELLER}),
}


def parties_of(order: Order, user_id: str) -> frozenset[Party]:
    parties = set()
    if order.buyer_id == user_id:
        parties.add(Party.BUYER)
    if order.seller_id == user_id:
        parties.add(Party.SELLER)
    if order.provider_id == user_id:
        parties.add(Party.PROVIDER)
    return frozenset(parties)


def next_statuses(current: OrderStatus) -> list[OrderStatus]:
    return [to for (frm, to) in TRANSITIONS if frm == current]


def check_transition(order: Order, user_id: str, target: OrderStatus) -> frozenset[Party]:
    """Validate one move; returns the acting user's parties on success.

    Raises:
        ForbiddenError: user is not party to the order, or their party may
            not perform this particular move.
        InvalidTransitionError: the move skips states, goes backwards, or
            leaves a terminal state.
    """
    parties = parties_of(order, user_id)
    if not parties:
        raise ForbiddenError("Not a party to this order")
    current = OrderStatus(order.status)
    allowed = TRANSITIONS.get((current, target))
    if allowed is None:
        raise InvalidTransitionError(current.value, target.value)
    if not parties & allowed:
        raise ForbiddenError(
            f"{'/'.join(sorted(p.value for p in parties))} may not move order to {target.value}"
        )
    return parties


def validate_delivery_confirmation(code: str | None, notes: str | None) -> None:
    code = (code or "").strip()
    notes = (notes or "").strip()
    if not code:
        raise IncompleteConfirmationError("confirmation code is required")
    if len(code) < MIN_CONFIRMATION_CODE_LENGTH:
        raise IncompleteConfirmationError(
            f"confirmation code must be at least {MIN_CONFIRMATION_CODE_LENGTH} characters"
        )
    if not notes:
        raise IncompleteConfirmationError("delivery notes are required")
