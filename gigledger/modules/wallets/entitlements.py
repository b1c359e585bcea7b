"""Pure entitlement rules: affordability, promotion expiry and token pricing."""

from __future__ import annotations

from datetime import datetime, timedelta

from .models import PromotionTag


def can_afford(balance: int, cost: int) -> bool:
    return balance >= cost


def compute_new_expiry(
    current_expiry: datetime | None,
    plan_duration_days: int,
    now: datetime,
) -> datetime:
    """Expiry after buying ``plan_duration_days`` more days.

    A running promotion is extended from its current expiry; a missing or
    lapsed one starts from ``now``.
    """
    if current_expiry is None or current_expiry <= now:
        base = now
    else:
        base = current_expiry
    return base + timedelta(days=plan_duration_days)


def is_promotion_active(tag: PromotionTag | str, expires_at: datetime | None, now: datetime) -> bool:
    return PromotionTag(tag) is not PromotionTag.NONE and expires_at is not None and expires_at > now


def effective_promotion_tag(tag: PromotionTag | str, expires_at: datetime | None, now: datetime) -> PromotionTag:
    """Stored tag with lazy expiry applied; lapsed promotions read as ``none``."""
    if is_promotion_active(tag, expires_at, now):
        return PromotionTag(tag)
    return PromotionTag.NONE


def tokens_for_payment(amount_minor: int, price_per_token: int) -> int:
    """Whole tokens bought by ``amount_minor`` (e.g. kobo) at ``price_per_token`` major units."""
    if amount_minor <= 0:
        return 0
    return amount_minor // (100 * price_per_token)
