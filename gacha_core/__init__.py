"""Gacha pity probabilities, benefit accrual and purchase planning."""

from .api import (
    BannerAnalysis,
    analyze_banner,
    available_pulls,
    chance_within_pulls,
    currency_needed,
    exact_chart_data,
    owned_main_equivalent,
)
from .benefits import (
    build_trigger_map,
    effective_cost_series,
    extract_benefit_trigger_points,
    simulate_total_draws,
    total_free_pulls,
)
from .data import (
    DEFAULT_GAME_CONFIG_PATH,
    DEFAULT_SIMULATION_RUNS,
    DEFAULT_SIMULATION_SEED,
    REFERENCE_PULL_COST,
    load_game_config,
    parse_game_config,
)
from .distribution import (
    convolve_pdf,
    cumulative_from_pdf,
    exact_target_pdf,
    featured_pdf,
    multi_target_pdf,
    pdf_expectation,
    pdf_percentile,
    success_pdf,
)
from .exchange import convert_by_direct_rate, find_direct_rate
from .models import (
    Banner,
    BannerBenefit,
    BenefitReward,
    BenefitStep,
    BenefitTriggerPoint,
    Currency,
    DrawState,
    EffectiveCostPoint,
    ExchangeRate,
    GameConfig,
    PackEfficiency,
    Percentiles,
    PityConfig,
    PullDistributionPoint,
    PurchaseVariant,
    RechargePack,
    ShoppingListItem,
    ShoppingPlan,
    SimulationResult,
    TriggerReward,
)
from .random_source import Mulberry32Random, PythonRandomSource, RandomSource
from .rates import clamp01, rate_at
from .shopping import expand_pack_variants, optimize_shopping
from .simulation import merge_pull_counts, simulate, simulate_sharded, summarize_pull_counts

__all__ = [
    "Banner",
    "BannerAnalysis",
    "BannerBenefit",
    "BenefitReward",
    "BenefitStep",
    "BenefitTriggerPoint",
    "Currency",
    "DEFAULT_GAME_CONFIG_PATH",
    "DEFAULT_SIMULATION_RUNS",
    "DEFAULT_SIMULATION_SEED",
    "DrawState",
    "EffectiveCostPoint",
    "ExchangeRate",
    "GameConfig",
    "Mulberry32Random",
    "PackEfficiency",
    "Percentiles",
    "PityConfig",
    "PullDistributionPoint",
    "PurchaseVariant",
    "PythonRandomSource",
    "REFERENCE_PULL_COST",
    "RandomSource",
    "RechargePack",
    "ShoppingListItem",
    "ShoppingPlan",
    "SimulationResult",
    "TriggerReward",
    "analyze_banner",
    "available_pulls",
    "build_trigger_map",
    "chance_within_pulls",
    "clamp01",
    "convert_by_direct_rate",
    "convolve_pdf",
    "cumulative_from_pdf",
    "currency_needed",
    "effective_cost_series",
    "exact_chart_data",
    "exact_target_pdf",
    "expand_pack_variants",
    "extract_benefit_trigger_points",
    "featured_pdf",
    "find_direct_rate",
    "load_game_config",
    "merge_pull_counts",
    "multi_target_pdf",
    "optimize_shopping",
    "owned_main_equivalent",
    "parse_game_config",
    "pdf_expectation",
    "pdf_percentile",
    "rate_at",
    "simulate",
    "simulate_sharded",
    "simulate_total_draws",
    "success_pdf",
    "summarize_pull_counts",
    "total_free_pulls",
]
