"""
Level classifier.

A member's tier is the rule with the highest ``min_points`` that their
lifetime points reach. Spending points never lowers the tier.
"""

import logging
from decimal import Decimal

from django.db import transaction

from ..models import Member, MemberLevel, Tier
from .exceptions import InvalidLevelError
from .member_management import lock_member

logger = logging.getLogger(__name__)


def classify(lifetime_points: int, rules=None) -> str:
    """
    Map a lifetime points total to a tier.

    Args:
        lifetime_points: Non-negative points total
        rules: Iterable of objects with ``level`` and ``min_points``;
            defaults to the ``MemberLevel`` table

    Returns:
        Tier value; ``bronze`` when no rule qualifies

    Raises:
        ValueError: If lifetime_points is negative
    """
    if lifetime_points < 0:
        raise ValueError("lifetime_points must be non-negative")

    if rules is None:
        rules = MemberLevel.objects.all()

    qualifying = [rule for rule in rules if rule.min_points <= lifetime_points]
    if not qualifying:
        return Tier.BRONZE

    # Equal thresholds resolve to the higher tier
    best = max(qualifying, key=lambda rule: (rule.min_points, Tier.rank(rule.level)))
    return best.level


def sync_member_tier(member: Member, rules=None) -> bool:
    """
    Bring ``member.tier`` in line with its lifetime points.

    The caller is expected to hold the member row lock. Writes only when the
    tier actually changes.

    Returns:
        True if the tier was updated
    """
    new_tier = classify(member.lifetime_points, rules)
    if new_tier == member.tier:
        return False

    old_tier = member.tier
    member.tier = new_tier
    member.save(update_fields=['tier', 'updated_at'])
    logger.info("Member %s tier changed %s -> %s", member.pk, old_tier, new_tier)
    return True


@transaction.atomic
def sync_tier(*, member_id) -> bool:
    """Recompute and persist one member's tier."""
    return sync_member_tier(lock_member(member_id))


def list_levels():
    """All tier rules ordered by threshold."""
    return list(MemberLevel.objects.order_by('min_points'))


def get_level_rule(tier: str):
    """Rule for one tier, or None if the table has no row for it."""
    return MemberLevel.objects.filter(level=tier).first()


@transaction.atomic
def upsert_level(
    *,
    level: str,
    min_points: int,
    points_earn_rate: Decimal,
    discount_percent: Decimal,
) -> MemberLevel:
    """
    Create or replace the rule for a tier, then reclassify every member.

    Raises:
        InvalidLevelError: On unknown tier or out-of-range values
    """
    if level not in Tier.values:
        raise InvalidLevelError(f"Unknown level: {level}")
    if min_points < 0:
        raise InvalidLevelError("min_points must be non-negative")
    if points_earn_rate < 0:
        raise InvalidLevelError("points_earn_rate must be non-negative")
    if not (0 <= discount_percent <= 100):
        raise InvalidLevelError("discount_percent must be between 0 and 100")

    rule, created = MemberLevel.objects.update_or_create(
        level=level,
        defaults={
            'min_points': min_points,
            'points_earn_rate': points_earn_rate,
            'discount_percent': discount_percent,
        },
    )
    logger.info(
        "%s level %s: min_points=%s earn_rate=%s discount=%s",
        "Created" if created else "Updated", level, min_points, points_earn_rate, discount_percent,
    )

    rules = list_levels()
    changed = sum(
        sync_member_tier(member, rules)
        for member in Member.objects.select_for_update().order_by('pk')
    )
    if changed:
        logger.info("Reclassified %s member(s) after level change", changed)

    return rule
