"""Map Stripe price identifiers to internal plan keys."""

from billhook.core.models import KnownPriceIds, PlanKey


def plan_table(known: KnownPriceIds) -> list[tuple[str, PlanKey]]:
    """Ordered (price id, plan key) pairs; earlier entries take precedence."""
    return [
        (known.growth, PlanKey.GROWTH),
        (known.cheap, PlanKey.RIDICULOUS),
        (known.free, PlanKey.FREE),
    ]


def resolve_plan_key(price_id: str | None, known: KnownPriceIds) -> PlanKey:
    """
    Resolve a price id by exact match, first match wins.

    An unmatched id means the configured price ids have drifted from Stripe,
    which degrades to ``sub::unknown`` rather than failing.
    """
    if not price_id:
        return PlanKey.UNKNOWN

    for candidate, key in plan_table(known):
        if candidate and candidate == price_id:
            return key

    return PlanKey.UNKNOWN
