"""Unit tests for the order fulfillment state machine."""

from datetime import UTC, datetime
from typing import Any

import pytest

from src.qm_common.enums import OrderStatus
from src.qm_common.errors import (
    ForbiddenError,
    IncompleteConfirmationError,
    InvalidTransitionError,
)
from src.qm_order.domain.models import Order
from src.qm_order.domain.state_machine import (
    Party,
    check_transition,
    next_statuses,
    parties_of,
    validate_delivery_confirmation,
)

S = OrderStatus


def _order(status: str = "CONFIRMED", **kwargs: Any) -> Order:
    now = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)
    defaults: dict[str, Any] = {
        "id": "order-1",
        "request_id": "qr_1",
        "accepted_quote_id": "q-1",
        "buyer_id": "buyer",
        "seller_id": "seller",
        "provider_id": "provider",
        "subtotal": 5000,
        "delivery_fee": 1000,
        "total_amount": 6000,
        "payment_method": "CASH_ON_DELIVERY",
        "delivery_code": "123456",
        "created_at": now,
        "last_updated": now,
        "status": status,
    }
    defaults.update(kwargs)
    return Order(**defaults)


class TestHappyPath:
    @pytest.mark.parametrize(
        ("current", "target", "user"),
        [
            (S.CONFIRMED, S.PROCESSING, "seller"),
            (S.PROCESSING, S.SHIPPED, "seller"),
            (S.PROCESSING, S.PICKED_UP, "provider"),
            (S.SHIPPED, S.IN_TRANSIT, "provider"),
            (S.PICKED_UP, S.IN_TRANSIT, "provider"),
            (S.IN_TRANSIT, S.ARRIVED, "provider"),
            (S.ARRIVED, S.DELIVERED, "provider"),
            (S.CONFIRMED, S.CANCELLED, "buyer"),
            (S.PROCESSING, S.CANCELLED, "seller"),
        ],
    )
    def test_allowed_moves(self, current: OrderStatus, target: OrderStatus, user: str) -> None:
        check_transition(_order(current.value), user, target)


class TestRejectedMoves:
    def test_skipping_states_is_invalid(self) -> None:
        with pytest.raises(InvalidTransitionError):
            check_transition(_order("CONFIRMED"), "seller", S.SHIPPED)

    def test_backwards_is_invalid(self) -> None:
        with pytest.raises(InvalidTransitionError):
            check_transition(_order("IN_TRANSIT"), "provider", S.SHIPPED)

    def test_buyer_cannot_cancel_after_shipment(self) -> None:
        with pytest.raises(InvalidTransitionError):
            check_transition(_order("SHIPPED"), "buyer", S.CANCELLED)

    def test_terminal_states_have_no_exits(self) -> None:
        assert next_statuses(S.DELIVERED) == []
        assert next_statuses(S.CANCELLED) == []
        with pytest.raises(InvalidTransitionError):
            check_transition(_order("DELIVERED"), "provider", S.ARRIVED)

    def test_outsider_forbidden(self) -> None:
        with pytest.raises(ForbiddenError):
            check_transition(_order("CONFIRMED"), "stranger", S.PROCESSING)

    def test_provider_cannot_start_processing(self) -> None:
        with pytest.raises(ForbiddenError):
            check_transition(_order("CONFIRMED"), "provider", S.PROCESSING)

    def test_seller_cannot_mark_in_transit(self) -> None:
        with pytest.raises(ForbiddenError):
            check_transition(_order("SHIPPED"), "seller", S.IN_TRANSIT)

    def test_provider_cannot_cancel(self) -> None:
        with pytest.raises(ForbiddenError):
            check_transition(_order("CONFIRMED"), "provider", S.CANCELLED)


class TestParties:
    def test_each_party_detected(self) -> None:
        order = _order()
        assert parties_of(order, "buyer") == {Party.BUYER}
        assert parties_of(order, "seller") == {Party.SELLER}
        assert parties_of(order, "provider") == {Party.PROVIDER}
        assert parties_of(order, "nobody") == frozenset()

    def test_next_statuses_from_processing(self) -> None:
        assert set(next_statuses(S.PROCESSING)) == {S.SHIPPED, S.PICKED_UP, S.CANCELLED}


class TestDeliveryConfirmation:
    def test_complete_payload_passes(self) -> None:
        validate_delivery_confirmation("123456", "left with reception")

    @pytest.mark.parametrize(
        ("code", "notes"),
        [("", "notes"), (None, "notes"), ("12", "notes"), ("  ", "notes"), ("1234", ""), ("1234", None)],
    )
    def test_incomplete_payload_rejected(self, code: str | None, notes: str | None) -> None:
        with pytest.raises(IncompleteConfirmationError):
            validate_delivery_confirmation(code, notes)
