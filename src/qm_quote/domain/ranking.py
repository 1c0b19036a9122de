"""Quote ordering policy exposed to callers.

The ledger stores quotes unordered; presentation order is the caller's
choice. Ties break on the earliest bid, which only affects visibility;
acceptance is always the buyer's explicit pick.
"""
from src.qm_common.enums import QuoteSort
from src.qm_quote.domain.models import Quote


def rank_quotes(quotes: list[Quote], sort_by: QuoteSort = QuoteSort.FEE) -> list[Quote]:
    if sort_by == QuoteSort.RATING:
        # unrated providers sort last
        return sorted(
            quotes,
            key=lambda q: (
                q.provider_rating is None,
                -(q.provider_rating or 0.0),
                q.created_at,
                q.id,
            ),
        )
    return sorted(quotes, key=lambda q: (q.delivery_fee, q.created_at, q.id))
