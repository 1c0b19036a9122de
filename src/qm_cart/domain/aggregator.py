"""Cart aggregation: buyer cart lines → one seller group per seller.

Both functions are pure; request creation happens in the registry.
"""
from src.qm_cart.domain.models import (
    CartLine,
    QuoteRequestDraft,
    RequestPreferences,
    SellerGroup,
)
from src.qm_common.errors import InvalidGroupError


def group_by_seller(lines: list[CartLine], buyer_id: str) -> list[SellerGroup]:
    """Group lines by seller_id, in order of each seller's first appearance."""
    buckets: dict[str, list[CartLine]] = {}
    for line in lines:
        buckets.setdefault(line.seller_id, []).append(line)
    return [
        SellerGroup(
            buyer_id=buyer_id,
            seller_id=seller_id,
            lines=tuple(group_lines),
            subtotal=sum(line.line_total for line in group_lines),
        )
        for seller_id, group_lines in buckets.items()
    ]


def build_request_draft(
    group: SellerGroup, preferences: RequestPreferences
) -> QuoteRequestDraft:
    """Snapshot a seller group into a quote-request draft.

    A seller cannot invite bids to deliver their own goods.
    """
    if group.is_own_group:
        raise InvalidGroupError("cannot request delivery quotes for your own listings")
    if not group.lines:
        raise InvalidGroupError("seller group has no lines")
    return QuoteRequestDraft(
        buyer_id=group.buyer_id,
        seller_id=group.seller_id,
        line_items=group.lines,
        subtotal=group.subtotal,
        preferences=preferences,
    )
