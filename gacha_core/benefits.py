"""Free-draw benefit schedules and their effect on the cost per draw."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from .data import BENEFIT_KINDS, BOX_REWARD, EFFECTIVE_COST_DECIMALS, FREE_PULLS_REWARD
from .models import (
    BannerBenefit,
    BenefitKind,
    BenefitReward,
    BenefitTriggerPoint,
    EffectiveCostPoint,
    TriggerReward,
)
from .rates import floor_at_least

TriggerMap = dict[int, TriggerReward]


def _sum_reward(rewards: Iterable[BenefitReward], reward_type: str) -> int:
    return sum(floor_at_least(r.amount, 0) for r in rewards if r.type == reward_type)


def _has_reward(rewards: Iterable[BenefitReward], reward_type: str) -> bool:
    return any(r.type == reward_type and floor_at_least(r.amount, 0) > 0 for r in rewards)


def build_trigger_map(
    benefits: Optional[Sequence[BannerBenefit]],
    kind: BenefitKind,
) -> TriggerMap:
    """Merge every step of ``kind`` into rewards keyed by trigger draw count.

    Steps sharing a trigger point are summed; steps granting neither free
    draws nor a box are dropped. Keys are in ascending order.
    """

    merged: TriggerMap = {}
    for benefit in benefits or ():
        if benefit.kind != kind:
            continue
        for step in benefit.steps:
            trigger = floor_at_least(step.trigger_pulls, 0)
            free = _sum_reward(step.rewards, FREE_PULLS_REWARD)
            has_box = _has_reward(step.rewards, BOX_REWARD)
            if free == 0 and not has_box:
                continue
            existing = merged.get(trigger)
            if existing is None:
                merged[trigger] = TriggerReward(free_pulls=free, has_box=has_box)
            else:
                existing.free_pulls += free
                existing.has_box = existing.has_box or has_box
    return dict(sorted(merged.items()))


def extract_benefit_trigger_points(
    benefits: Optional[Sequence[BannerBenefit]],
) -> list[BenefitTriggerPoint]:
    """Return every trigger point of both kinds, sorted by draw count."""

    points = [
        BenefitTriggerPoint(
            trigger_pulls=trigger,
            kind=kind,
            free_pulls=reward.free_pulls,
            has_box=reward.has_box,
        )
        for kind in BENEFIT_KINDS
        for trigger, reward in build_trigger_map(benefits, kind).items()
    ]
    points.sort(key=lambda point: point.trigger_pulls)
    return points


def total_free_pulls(points: Iterable[BenefitTriggerPoint], kind: BenefitKind) -> int:
    return sum(point.free_pulls for point in points if point.kind == kind)


def simulate_total_draws(
    paid_draws: int,
    benefits: Optional[Sequence[BannerBenefit]],
) -> int:
    """Return the total draws obtained from ``paid_draws`` paid draws.

    Free draws are always spent before paid ones, and every draw counts
    towards the trigger points of both benefit kinds. Each trigger point
    fires once, when the running total reaches it exactly.
    """

    paid_remaining = floor_at_least(paid_draws, 0)
    one_time = build_trigger_map(benefits, "one_time")
    cumulative = build_trigger_map(benefits, "cumulative")

    free_remaining = 0
    for trigger_map in (one_time, cumulative):
        initial = trigger_map.get(0)
        if initial is not None:
            free_remaining += initial.free_pulls

    total = 0
    while paid_remaining > 0 or free_remaining > 0:
        if free_remaining > 0:
            free_remaining -= 1
        else:
            paid_remaining -= 1
        total += 1
        for trigger_map in (one_time, cumulative):
            reward = trigger_map.get(total)
            if reward is not None:
                free_remaining += reward.free_pulls
    return total


def effective_cost_series(
    cost_per_pull: Decimal | int | str,
    benefits: Optional[Sequence[BannerBenefit]],
    max_paid_pulls: int,
) -> list[EffectiveCostPoint]:
    """Return the average cost per obtained draw for each paid-draw budget."""

    max_paid = floor_at_least(max_paid_pulls, 0)
    cost = Decimal(str(cost_per_pull))
    quantum = Decimal(1).scaleb(-EFFECTIVE_COST_DECIMALS)

    series: list[EffectiveCostPoint] = []
    for paid in range(max_paid + 1):
        total = simulate_total_draws(paid, benefits)
        average = Decimal(0) if total <= 0 else cost * paid / total
        series.append(
            EffectiveCostPoint(
                paid_pulls=paid,
                total_pulls=total,
                avg_cost_per_pull=average.quantize(quantum, rounding=ROUND_HALF_UP),
            )
        )
    return series
