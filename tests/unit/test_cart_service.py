"""Unit tests for CartApplicationService with a mock registry."""

from unittest.mock import AsyncMock

import pytest

from src.qm_cart.application.service import CartApplicationService
from src.qm_cart.domain.models import CartLine, RequestPreferences
from src.qm_common.enums import Role
from src.qm_common.errors import (
    DuplicateOpenRequestError,
    InvalidGroupError,
    RoleRequiredError,
    SellerGroupNotInCartError,
)
from src.qm_gateway.auth.actor import Actor

BUYER = Actor("buyer", frozenset({Role.BUYER, Role.SELLER}))


def _lines() -> list[CartLine]:
    return [
        CartLine("s1", "p1", "FISH", 1000, 2),
        CartLine("buyer", "own", "FISH", 500, 1),
        CartLine("s2", "p2", "INDUSTRIAL", 7000, 1),
    ]


class TestCheckout:
    async def test_one_request_per_foreign_seller(self) -> None:
        registry = AsyncMock()
        svc = CartApplicationService(registry)
        db = AsyncMock()
        override = RequestPreferences(quotes_expire_after_hours=4)

        result = await svc.checkout(_lines(), RequestPreferences(), {"s2": override}, BUYER, db)

        drafts = [call.args[0] for call in registry.create.await_args_list]
        assert [d.seller_id for d in drafts] == ["s1", "s2"]
        assert drafts[0].preferences.quotes_expire_after_hours == 24
        assert drafts[1].preferences.quotes_expire_after_hours == 4
        assert result.skipped_own_sellers == ["buyer"]
        assert len(result.created) == 2
        db.commit.assert_awaited_once()

    async def test_all_or_nothing(self) -> None:
        registry = AsyncMock()
        registry.create.side_effect = [AsyncMock(), DuplicateOpenRequestError("s2", "qr_1")]
        db = AsyncMock()
        with pytest.raises(DuplicateOpenRequestError):
            await CartApplicationService(registry).checkout(
                _lines(), RequestPreferences(), {}, BUYER, db
            )
        db.commit.assert_not_awaited()
        db.rollback.assert_awaited_once()

    async def test_requires_buyer_role(self) -> None:
        with pytest.raises(RoleRequiredError):
            await CartApplicationService(AsyncMock()).checkout(
                _lines(), RequestPreferences(), {}, Actor("p", frozenset({Role.PROVIDER})), AsyncMock()
            )


class TestCreateRequest:
    async def test_own_group_rejected(self) -> None:
        registry = AsyncMock()
        with pytest.raises(InvalidGroupError):
            await CartApplicationService(registry).create_request(
                _lines(), "buyer", RequestPreferences(), BUYER, AsyncMock()
            )
        registry.create.assert_not_awaited()

    async def test_seller_not_in_cart(self) -> None:
        with pytest.raises(SellerGroupNotInCartError):
            await CartApplicationService(AsyncMock()).create_request(
                _lines(), "s9", RequestPreferences(), BUYER, AsyncMock()
            )

    def test_preview_groups(self) -> None:
        groups = CartApplicationService(AsyncMock()).preview(_lines(), BUYER)
        assert [(g.seller_id, g.is_own_group) for g in groups] == [
            ("s1", False), ("buyer", True), ("s2", False),
        ]
