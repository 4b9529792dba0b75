"""High-level entry points used by the UI and callers."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from time import perf_counter
from typing import Optional

from .benefits import effective_cost_series, extract_benefit_trigger_points
from .data import (
    CHART_TRIGGER_PADDING,
    DEFAULT_SIMULATION_RUNS,
    DEFAULT_SIMULATION_SEED,
    MAX_CHART_PAID_PULLS,
    MIN_CHART_PAID_PULLS,
)
from .distribution import cumulative_from_pdf, exact_target_pdf
from .exchange import convert_by_direct_rate
from .models import (
    Banner,
    BenefitTriggerPoint,
    DrawState,
    EffectiveCostPoint,
    GameConfig,
    PityConfig,
    PullDistributionPoint,
    ShoppingPlan,
    SimulationResult,
)
from .random_source import Mulberry32Random
from .rates import floor_at_least
from .shopping import optimize_shopping
from .simulation import simulate


def _non_negative(value: Decimal | int | str) -> Decimal:
    amount = Decimal(str(value))
    if not amount.is_finite() or amount < 0:
        return Decimal(0)
    return amount


def owned_main_equivalent(
    config: GameConfig,
    owned_main: Decimal | int | str,
    owned_premium: Decimal | int | str = 0,
) -> Decimal:
    """Return owned main currency plus premium converted at the direct rate.

    A missing premium-to-main rate contributes nothing.
    """

    main = _non_negative(owned_main)
    premium = _non_negative(owned_premium)
    converted = convert_by_direct_rate(
        config.exchange_rates,
        premium,
        config.default_premium_currency_id,
        config.default_main_currency_id,
    )
    return main + (converted if converted is not None else Decimal(0))


def available_pulls(owned_equivalent: Decimal, cost_per_pull: Decimal) -> int:
    """Return how many draws the owned currency pays for."""

    cost = Decimal(cost_per_pull)
    if not cost.is_finite() or cost <= 0:
        return 0
    return int((Decimal(owned_equivalent) / cost).to_integral_value(rounding=ROUND_FLOOR))


def chance_within_pulls(distribution: Sequence[PullDistributionPoint], pulls: int) -> Decimal:
    """Return the percent chance of finishing within ``pulls`` draws."""

    total = sum(
        (Decimal(str(point.probability)) for point in distribution if point.pulls <= pulls),
        Decimal(0),
    )
    return total * 100


def currency_needed(pulls: int, cost_per_pull: Decimal, owned: Decimal) -> Decimal:
    """Return the currency still missing to afford ``pulls`` draws."""

    return max(Decimal(0), Decimal(pulls) * Decimal(cost_per_pull) - Decimal(owned))


def benefit_chart_max_paid(points: Sequence[BenefitTriggerPoint]) -> int:
    max_trigger = max((point.trigger_pulls for point in points), default=0)
    return min(MAX_CHART_PAID_PULLS, max(MIN_CHART_PAID_PULLS, max_trigger + CHART_TRIGGER_PADDING))


def exact_chart_data(
    pity: PityConfig,
    state: DrawState,
    target_count: int,
) -> list[tuple[int, float]]:
    """Return the exact cumulative chance series for ``target_count`` copies."""

    return cumulative_from_pdf(exact_target_pdf(pity, state, target_count))


@dataclass
class BannerAnalysis:
    """Bundle containing the simulation and the derived spending advice."""

    banner: Banner
    pity: PityConfig
    target_count: int
    simulation: SimulationResult
    owned_equivalent: Decimal
    available_pulls: int
    chance_within_owned: Decimal
    need_for_p50: Decimal
    need_for_p90: Decimal
    plan_p50: ShoppingPlan
    plan_p90: ShoppingPlan
    benefit_points: list[BenefitTriggerPoint]
    effective_costs: list[EffectiveCostPoint]
    compute_seconds: float


def analyze_banner(
    config: GameConfig,
    banner_id: str,
    target_count: int,
    state: Optional[DrawState] = None,
    owned_main: Decimal | int | str = 0,
    owned_premium: Decimal | int | str = 0,
    simulation_runs: int = DEFAULT_SIMULATION_RUNS,
    simulation_seed: Optional[int] = DEFAULT_SIMULATION_SEED,
) -> BannerAnalysis:
    """Simulate a banner target and plan the purchases it requires.

    Parameters
    ----------
    config:
        Game configuration holding banners, pity systems and packs.
    banner_id:
        Banner to analyse; unknown ids fall back to the first banner.
    target_count:
        Number of featured copies wanted.
    state:
        Current pity counter and guarantee status.
    owned_main, owned_premium:
        Currency already owned.
    simulation_runs:
        Monte Carlo runs used for the percentiles.
    simulation_seed:
        Seed for the deterministic generator; ``None`` uses system randomness.

    Raises
    ------
    ValueError
        If the configuration defines no banners.
    """

    banner = config.banner(banner_id)
    if banner is None:
        raise ValueError("Game config defines no banners.")
    pity = config.pity_system(banner.pity_system_id)
    target = floor_at_least(target_count, 1)

    compute_start = perf_counter()
    random_source = Mulberry32Random(simulation_seed) if simulation_seed is not None else None
    simulation = simulate(pity, target, state or DrawState(), simulation_runs, random_source)

    owned = owned_main_equivalent(config, owned_main, owned_premium)
    cost_per_pull = Decimal(banner.cost_per_pull)
    pulls_owned = available_pulls(owned, cost_per_pull)
    need_p50 = currency_needed(simulation.percentiles.p50, cost_per_pull, owned)
    need_p90 = currency_needed(simulation.percentiles.p90, cost_per_pull, owned)

    points = extract_benefit_trigger_points(banner.benefits)
    costs = effective_cost_series(cost_per_pull, banner.benefits, benefit_chart_max_paid(points))
    plan_p50 = optimize_shopping(need_p50, config.recharge_packs)
    plan_p90 = optimize_shopping(need_p90, config.recharge_packs)
    compute_seconds = perf_counter() - compute_start

    return BannerAnalysis(
        banner=banner,
        pity=pity,
        target_count=target,
        simulation=simulation,
        owned_equivalent=owned,
        available_pulls=pulls_owned,
        chance_within_owned=chance_within_pulls(simulation.distribution, pulls_owned),
        need_for_p50=need_p50,
        need_for_p90=need_p90,
        plan_p50=plan_p50,
        plan_p90=plan_p90,
        benefit_points=points,
        effective_costs=costs,
        compute_seconds=compute_seconds,
    )
