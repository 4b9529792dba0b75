"""Dataclasses shared across the probability, benefit and shopping modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Literal, Optional

from .rates import floor_at_least

BenefitKind = Literal["one_time", "cumulative"]
RewardType = Literal["free_pulls", "select_up_five_star_box"]
PackKind = Literal["direct", "monthly"]


@dataclass(frozen=True)
class PityConfig:
    """Pity and guarantee rules of a banner family."""

    base_rate: float
    soft_pity_start: Optional[int]
    soft_pity_increase_per_pull: Optional[float]
    hard_pity: int
    featured_win_rate: float
    guaranteed_after_loses: int
    id: str = ""
    name: str = ""


@dataclass(frozen=True)
class DrawState:
    """Progress carried into a query: pity counter and losing streak."""

    pity_counter: int = 0
    guaranteed_loses: int = 0
    is_featured_guaranteed: bool = False

    def loses_for(self, config: PityConfig) -> int:
        """Return the effective loss count, honouring the guarantee flag."""

        threshold = floor_at_least(config.guaranteed_after_loses, 0)
        if self.is_featured_guaranteed:
            return threshold
        return floor_at_least(self.guaranteed_loses, 0)


@dataclass(frozen=True)
class PullDistributionPoint:
    pulls: int
    probability: float


@dataclass(frozen=True)
class Percentiles:
    p10: int
    p50: int
    p90: int


@dataclass(frozen=True)
class SimulationResult:
    """Aggregated Monte Carlo metrics for a draw target."""

    distribution: list[PullDistributionPoint]
    percentiles: Percentiles
    expected_value: float
    total_runs: int


@dataclass(frozen=True)
class BenefitReward:
    type: RewardType
    amount: int


@dataclass(frozen=True)
class BenefitStep:
    trigger_pulls: int
    rewards: list[BenefitReward] = field(default_factory=list)


@dataclass(frozen=True)
class BannerBenefit:
    """A banner reward schedule of a single kind."""

    kind: BenefitKind
    steps: list[BenefitStep] = field(default_factory=list)


@dataclass
class TriggerReward:
    """Merged rewards granted at one trigger point."""

    free_pulls: int
    has_box: bool


@dataclass(frozen=True)
class BenefitTriggerPoint:
    trigger_pulls: int
    kind: BenefitKind
    free_pulls: int
    has_box: bool


@dataclass(frozen=True)
class EffectiveCostPoint:
    paid_pulls: int
    total_pulls: int
    avg_cost_per_pull: Decimal


@dataclass(frozen=True)
class RechargePack:
    """Purchasable bundle of premium currency."""

    id: str
    name: str
    kind: PackKind
    price: Decimal
    premium_amount: Decimal
    premium_currency_id: str = ""
    first_purchase_bonus: Optional[Decimal] = None
    duration_days: Optional[int] = None
    daily_amount: Optional[Decimal] = None


@dataclass(frozen=True)
class PurchaseVariant:
    """A concrete purchase option derived from a pack."""

    id: str
    name: str
    is_bonus_variant: bool
    currency_gain: int
    cost_minor_units: int


@dataclass(frozen=True)
class ShoppingListItem:
    pack_id: str
    pack_name: str
    count: int
    is_bonus_variant: bool
    unit_price: Decimal
    gained_currency: int


@dataclass(frozen=True)
class PackEfficiency:
    pack_id: str
    pack_name: str
    price: Decimal
    gained_currency: int
    cost_per_currency: Decimal
    cost_per_reference_pull: Decimal
    is_bonus_variant: bool


@dataclass(frozen=True)
class ShoppingPlan:
    """Cheapest purchase list covering a currency need."""

    needed_currency: int
    gained_currency: int
    overfill_currency: int
    total_cost: Decimal
    items: list[ShoppingListItem]
    efficiencies: list[PackEfficiency]

    @property
    def is_feasible(self) -> bool:
        """Return True when the plan actually covers the need."""

        return self.gained_currency >= self.needed_currency


@dataclass(frozen=True)
class ExchangeRate:
    from_currency_id: str
    to_currency_id: str
    rate: Decimal


@dataclass(frozen=True)
class Currency:
    id: str
    name: str
    kind: Literal["main", "premium"]
    decimals: int = 0


@dataclass(frozen=True)
class Banner:
    """A limited banner with its cost and reward schedule."""

    id: str
    name: str
    pity_system_id: str
    cost_per_pull: Decimal
    cost_currency_id: str
    up_items: list[str] = field(default_factory=list)
    category: Optional[str] = None
    type: Optional[str] = None
    benefits: list[BannerBenefit] = field(default_factory=list)


@dataclass(frozen=True)
class GameConfig:
    """In-memory game configuration consumed by the analysis entry points."""

    id: str
    name: str
    default_main_currency_id: str
    default_premium_currency_id: str
    currencies: list[Currency]
    pity_systems: list[PityConfig]
    banners: list[Banner]
    recharge_packs: list[RechargePack]
    exchange_rates: list[ExchangeRate]

    def pity_system(self, pity_id: str) -> PityConfig:
        """Return the pity system with the given id, or the first one."""

        for pity in self.pity_systems:
            if pity.id == pity_id:
                return pity
        return self.pity_systems[0]

    def banner(self, banner_id: str) -> Optional[Banner]:
        """Return the banner with the given id, or the first one if unknown."""

        for banner in self.banners:
            if banner.id == banner_id:
                return banner
        return self.banners[0] if self.banners else None

    def currency_name(self, currency_id: str, default: str = "") -> str:
        for currency in self.currencies:
            if currency.id == currency_id:
                return currency.name
        return default
