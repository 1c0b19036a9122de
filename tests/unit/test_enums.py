"""Tests for qm_common.enums — all enum values must match DB CHECK constraints."""

from src.qm_common.enums import (
    CloseReason,
    OrderStatus,
    PaymentMethod,
    QuoteSort,
    QuoteState,
    RequestState,
    Role,
    Urgency,
)


class TestAllEnumsAreStr:
    """All enums inherit from (str, Enum) for JSON serialization."""

    def test_order_status_is_str(self) -> None:
        assert isinstance(OrderStatus.PICKED_UP, str)
        assert OrderStatus.PICKED_UP == "PICKED_UP"

    def test_quote_sort_values_are_query_strings(self) -> None:
        assert QuoteSort("fee") is QuoteSort.FEE
        assert QuoteSort("rating") is QuoteSort.RATING


class TestValuesMatchCheckConstraints:
    def test_request_states(self) -> None:
        assert {s.value for s in RequestState} == {"OPEN", "CLOSED", "EXPIRED"}

    def test_close_reasons(self) -> None:
        assert {r.value for r in CloseReason} == {"ACCEPTED", "EXPIRED"}

    def test_quote_states(self) -> None:
        assert {s.value for s in QuoteState} == {"PENDING", "ACCEPTED", "REJECTED", "EXPIRED"}

    def test_order_statuses(self) -> None:
        assert [s.value for s in OrderStatus] == [
            "CONFIRMED",
            "PROCESSING",
            "SHIPPED",
            "PICKED_UP",
            "IN_TRANSIT",
            "ARRIVED",
            "DELIVERED",
            "CANCELLED",
        ]

    def test_payment_methods(self) -> None:
        assert PaymentMethod.CASH_ON_DELIVERY.value == "CASH_ON_DELIVERY"
        assert len(PaymentMethod) == 3

    def test_urgency(self) -> None:
        assert {u.value for u in Urgency} == {"NORMAL", "URGENT"}

    def test_roles(self) -> None:
        assert {r.value for r in Role} == {"BUYER", "SELLER", "PROVIDER", "ADMIN"}
