"""Dynamic-programming optimiser for the cheapest currency purchase plan."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Context, Decimal

from .data import EFFICIENCY_SIGNIFICANT_DIGITS, MINOR_UNITS_PER_MAJOR, REFERENCE_PULL_COST
from .models import PackEfficiency, PurchaseVariant, RechargePack, ShoppingListItem, ShoppingPlan

logger = logging.getLogger(__name__)

_EFFICIENCY_CONTEXT = Context(prec=EFFICIENCY_SIGNIFICANT_DIGITS, rounding=ROUND_HALF_UP)


def floor_currency(value: Decimal | int | str) -> int:
    """Floor a currency amount to a whole unit."""

    return int(Decimal(str(value)).to_integral_value(rounding=ROUND_FLOOR))


def to_minor_units(price: Decimal | int | str) -> int:
    """Convert a price to integer minor units, rounding half up."""

    scaled = Decimal(str(price)) * MINOR_UNITS_PER_MAJOR
    return int(scaled.to_integral_value(rounding=ROUND_HALF_UP))


def from_minor_units(minor_units: int) -> Decimal:
    return Decimal(minor_units) / MINOR_UNITS_PER_MAJOR


def pack_total_gain(pack: RechargePack) -> Decimal:
    """Return the currency a pack yields, including monthly daily income."""

    premium = Decimal(pack.premium_amount)
    if pack.kind != "monthly":
        return premium
    days = pack.duration_days or 0
    daily = Decimal(pack.daily_amount) if pack.daily_amount is not None else Decimal(0)
    return premium + daily * days


def expand_pack_variants(packs: Sequence[RechargePack]) -> list[PurchaseVariant]:
    """Expand packs into a repeatable variant plus an optional bonus variant."""

    variants: list[PurchaseVariant] = []
    for pack in packs:
        total_gain = pack_total_gain(pack)
        gain = max(0, floor_currency(total_gain))
        cost = max(0, to_minor_units(pack.price))
        if gain <= 0 or cost <= 0:
            continue
        variants.append(
            PurchaseVariant(
                id=pack.id,
                name=pack.name,
                is_bonus_variant=False,
                currency_gain=gain,
                cost_minor_units=cost,
            )
        )
        if pack.first_purchase_bonus is not None:
            bonus_gain = max(0, floor_currency(total_gain + Decimal(pack.first_purchase_bonus)))
            if bonus_gain > 0:
                variants.append(
                    PurchaseVariant(
                        id=pack.id,
                        name=pack.name,
                        is_bonus_variant=True,
                        currency_gain=bonus_gain,
                        cost_minor_units=cost,
                    )
                )
    return variants


def build_efficiency_table(
    variants: Sequence[PurchaseVariant],
    reference_pull_cost: int = REFERENCE_PULL_COST,
) -> list[PackEfficiency]:
    """Rank every variant by price per unit of currency."""

    pull_cost = Decimal(reference_pull_cost)
    rows: list[PackEfficiency] = []
    for variant in variants:
        gain = Decimal(variant.currency_gain)
        price = from_minor_units(variant.cost_minor_units)
        rows.append(
            PackEfficiency(
                pack_id=variant.id,
                pack_name=variant.name,
                price=price,
                gained_currency=variant.currency_gain,
                cost_per_currency=_EFFICIENCY_CONTEXT.divide(price, gain),
                cost_per_reference_pull=_EFFICIENCY_CONTEXT.divide(price * pull_cost, gain),
                is_bonus_variant=variant.is_bonus_variant,
            )
        )
    rows.sort(key=lambda row: (row.cost_per_currency, not row.is_bonus_variant, row.pack_id))
    return rows


def _empty_plan(
    need: int,
    efficiencies: list[PackEfficiency],
) -> ShoppingPlan:
    return ShoppingPlan(
        needed_currency=need,
        gained_currency=0,
        overfill_currency=need,
        total_cost=Decimal(0),
        items=[],
        efficiencies=efficiencies,
    )


class ShoppingSolver:
    """Exact minimum-cost cover over currency amounts ``0..limit``.

    Regular variants relax the cost table in ascending amount order, so one
    pass may reuse the same variant any number of times. Bonus variants relax
    in descending order, so each is used at most once; their choices are kept
    per stage so reconstruction never revisits a bonus variant.
    """

    def __init__(self, variants: Sequence[PurchaseVariant], need: int) -> None:
        self.variants = list(variants)
        self.need = need
        max_gain = max((v.currency_gain for v in self.variants), default=0)
        self.limit = need + max_gain
        self._cost = [math.inf] * (self.limit + 1)
        self._prev_amount = [-1] * (self.limit + 1)
        self._prev_variant = [-1] * (self.limit + 1)
        self._bonus_stages: list[tuple[int, list[bool]]] = []
        self._cost[0] = 0

    def _relax_regular(self, index: int) -> None:
        cost_table = self._cost
        gain = self.variants[index].currency_gain
        unit_cost = self.variants[index].cost_minor_units
        for amount in range(gain, self.limit + 1):
            source = amount - gain
            candidate = cost_table[source] + unit_cost
            if candidate < cost_table[amount]:
                cost_table[amount] = candidate
                self._prev_amount[amount] = source
                self._prev_variant[amount] = index

    def _relax_bonus(self, index: int) -> None:
        cost_table = self._cost
        gain = self.variants[index].currency_gain
        unit_cost = self.variants[index].cost_minor_units
        took = [False] * (self.limit + 1)
        for amount in range(self.limit, gain - 1, -1):
            candidate = cost_table[amount - gain] + unit_cost
            if candidate < cost_table[amount]:
                cost_table[amount] = candidate
                took[amount] = True
        self._bonus_stages.append((index, took))

    def solve(self) -> tuple[int, float]:
        """Fill the cost table and return ``(best_amount, best_cost)``.

        ``best_amount`` is -1 when no amount in ``need..limit`` is reachable.
        Ties keep the smallest amount, i.e. the least overfill.
        """

        for index, variant in enumerate(self.variants):
            if not variant.is_bonus_variant:
                self._relax_regular(index)
        for index, variant in enumerate(self.variants):
            if variant.is_bonus_variant:
                self._relax_bonus(index)

        best_amount = -1
        best_cost = math.inf
        for amount in range(self.need, self.limit + 1):
            if self._cost[amount] < best_cost:
                best_cost = self._cost[amount]
                best_amount = amount
        return best_amount, best_cost

    def reconstruct(self, amount: int) -> list[ShoppingListItem]:
        """Return the purchases that make up ``amount``.

        A pack bought only at its regular price is switched to its bonus
        variant for one copy: the first purchase of a pack always carries the
        bonus, at the same price.
        """

        counts: dict[tuple[str, bool], int] = {}
        chosen: dict[tuple[str, bool], PurchaseVariant] = {}
        bonus_by_pack = {v.id: v for v in self.variants if v.is_bonus_variant}

        def record(variant: PurchaseVariant) -> None:
            key = (variant.id, variant.is_bonus_variant)
            counts[key] = counts.get(key, 0) + 1
            chosen.setdefault(key, variant)

        current = amount
        for index, took in reversed(self._bonus_stages):
            if took[current]:
                record(self.variants[index])
                current -= self.variants[index].currency_gain

        while current > 0:
            index = self._prev_variant[current]
            previous = self._prev_amount[current]
            if index < 0 or previous < 0:
                break
            record(self.variants[index])
            current = previous

        for pack_id, is_bonus in list(counts):
            bonus = bonus_by_pack.get(pack_id)
            if is_bonus or bonus is None or (pack_id, True) in counts:
                continue
            counts[(pack_id, False)] -= 1
            if counts[(pack_id, False)] == 0:
                del counts[(pack_id, False)]
            record(bonus)

        items = [
            ShoppingListItem(
                pack_id=chosen[key].id,
                pack_name=chosen[key].name,
                count=count,
                is_bonus_variant=chosen[key].is_bonus_variant,
                unit_price=from_minor_units(chosen[key].cost_minor_units),
                gained_currency=chosen[key].currency_gain * count,
            )
            for key, count in counts.items()
        ]
        items.sort(key=lambda item: (not item.is_bonus_variant, item.pack_id))
        return items


def optimize_shopping(
    needed_currency: Decimal | int | str,
    packs: Sequence[RechargePack],
    reference_pull_cost: int = REFERENCE_PULL_COST,
) -> ShoppingPlan:
    """Return the cheapest set of purchases yielding at least ``needed_currency``.

    Parameters
    ----------
    needed_currency:
        Currency shortfall to cover; floored, negative values count as zero.
    packs:
        Purchasable packs. Packs with a first-purchase bonus also contribute a
        bonus variant usable at most once.
    reference_pull_cost:
        Currency per draw used for the informational efficiency table.

    Returns
    -------
    ShoppingPlan
        The plan; ``is_feasible`` is False when no purchases can cover the need.
    """

    need = max(0, floor_currency(needed_currency))
    if need == 0:
        return ShoppingPlan(
            needed_currency=0,
            gained_currency=0,
            overfill_currency=0,
            total_cost=Decimal(0),
            items=[],
            efficiencies=[],
        )

    variants = expand_pack_variants(packs)
    efficiencies = build_efficiency_table(variants, reference_pull_cost)
    if not variants:
        logger.warning("No usable recharge packs to cover %d currency.", need)
        return _empty_plan(need, efficiencies)

    solver = ShoppingSolver(variants, need)
    logger.debug(
        "Solving shopping plan: need=%d limit=%d variants=%d", need, solver.limit, len(variants)
    )
    best_amount, best_cost = solver.solve()
    if best_amount < 0 or math.isinf(best_cost):
        logger.warning("No purchase combination reaches %d currency.", need)
        return _empty_plan(need, efficiencies)

    items = solver.reconstruct(best_amount)
    gained = sum(item.gained_currency for item in items)
    return ShoppingPlan(
        needed_currency=need,
        gained_currency=gained,
        overfill_currency=gained - need,
        total_cost=from_minor_units(int(best_cost)),
        items=items,
        efficiencies=efficiencies,
    )
