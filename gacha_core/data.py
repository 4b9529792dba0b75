"""Domain constants, configuration loading helpers, and shared type aliases."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Final, Optional

from .models import (
    Banner,
    BannerBenefit,
    BenefitReward,
    BenefitStep,
    Currency,
    ExchangeRate,
    GameConfig,
    PityConfig,
    RechargePack,
)

logger = logging.getLogger(__name__)

PullPDF = list[float]
PullCounts = dict[int, int]

DEFAULT_SIMULATION_RUNS: Final[int] = 5000
DEFAULT_SIMULATION_SEED: Final[int] = 42
PERCENTILE_LEVELS: Final[tuple[float, float, float]] = (0.1, 0.5, 0.9)

REFERENCE_PULL_COST: Final[int] = 160
EFFECTIVE_COST_DECIMALS: Final[int] = 2
EFFICIENCY_SIGNIFICANT_DIGITS: Final[int] = 8
MINOR_UNITS_PER_MAJOR: Final[int] = 100

MIN_CHART_PAID_PULLS: Final[int] = 120
MAX_CHART_PAID_PULLS: Final[int] = 300
CHART_TRIGGER_PADDING: Final[int] = 30

BENEFIT_KINDS: Final[tuple[str, str]] = ("one_time", "cumulative")
FREE_PULLS_REWARD: Final[str] = "free_pulls"
BOX_REWARD: Final[str] = "select_up_five_star_box"

GAME_CONFIG_FILENAME: Final[str] = "game_config.json"
DEFAULT_GAME_CONFIG_PATH: Final[Path] = Path(__file__).with_name(GAME_CONFIG_FILENAME)


def to_decimal(value: Any) -> Decimal:
    """Convert a JSON number or numeric string to ``Decimal``.

    Raises
    ------
    ValueError
        If the value is not a finite number.
    """

    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Malformed numeric value {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Non-finite numeric value {value!r}")
    return result


def _optional_decimal(value: Any) -> Optional[Decimal]:
    return None if value is None else to_decimal(value)


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(to_decimal(value))


def parse_pity_system(raw: Mapping[str, Any]) -> PityConfig:
    soft_increase = raw.get("softPityIncreasePerPull")
    return PityConfig(
        id=str(raw.get("id", "")),
        name=str(raw.get("name", "")),
        base_rate=float(to_decimal(raw["baseRate"])),
        soft_pity_start=_optional_int(raw.get("softPityStart")),
        soft_pity_increase_per_pull=(
            None if soft_increase is None else float(to_decimal(soft_increase))
        ),
        hard_pity=int(to_decimal(raw["hardPity"])),
        featured_win_rate=float(to_decimal(raw["featuredWinRate"])),
        guaranteed_after_loses=int(to_decimal(raw.get("guaranteedAfterLoses", 0))),
    )


def parse_benefits(raw_benefits: Sequence[Mapping[str, Any]]) -> list[BannerBenefit]:
    benefits: list[BannerBenefit] = []
    for raw in raw_benefits:
        kind = raw["kind"]
        if kind not in BENEFIT_KINDS:
            raise ValueError(f"Unknown benefit kind '{kind}'")
        steps = [
            BenefitStep(
                trigger_pulls=int(to_decimal(step["triggerPulls"])),
                rewards=[
                    BenefitReward(type=reward["type"], amount=int(to_decimal(reward["amount"])))
                    for reward in step.get("rewards", [])
                ],
            )
            for step in raw.get("steps", [])
        ]
        benefits.append(BannerBenefit(kind=kind, steps=steps))
    return benefits


def parse_banner(raw: Mapping[str, Any]) -> Banner:
    return Banner(
        id=str(raw["id"]),
        name=str(raw.get("name", raw["id"])),
        pity_system_id=str(raw["pitySystemId"]),
        cost_per_pull=to_decimal(raw["costPerPull"]),
        cost_currency_id=str(raw["costCurrencyId"]),
        up_items=[str(item) for item in raw.get("upItems", [])],
        category=raw.get("category"),
        type=raw.get("type"),
        benefits=parse_benefits(raw.get("benefits", [])),
    )


def parse_recharge_pack(raw: Mapping[str, Any]) -> RechargePack:
    kind = raw.get("kind", "direct")
    if kind not in ("direct", "monthly"):
        raise ValueError(f"Unknown recharge pack kind '{kind}'")
    return RechargePack(
        id=str(raw["id"]),
        name=str(raw.get("name", raw["id"])),
        kind=kind,
        price=to_decimal(raw["priceCNY"]),
        premium_amount=to_decimal(raw["premiumAmount"]),
        premium_currency_id=str(raw.get("premiumCurrencyId", "")),
        first_purchase_bonus=_optional_decimal(raw.get("firstPurchaseBonusAmount")),
        duration_days=_optional_int(raw.get("durationDays")),
        daily_amount=_optional_decimal(raw.get("dailyMainCurrencyAmount")),
    )


def parse_game_config(raw: Mapping[str, Any]) -> GameConfig:
    """Build a :class:`GameConfig` from its JSON-compatible representation.

    Raises
    ------
    ValueError
        If a required key is missing or a numeric field is malformed.
    """

    try:
        config = GameConfig(
            id=str(raw["id"]),
            name=str(raw.get("name", raw["id"])),
            default_main_currency_id=str(raw["defaultMainCurrencyId"]),
            default_premium_currency_id=str(raw["defaultPremiumCurrencyId"]),
            currencies=[
                Currency(
                    id=str(item["id"]),
                    name=str(item.get("name", item["id"])),
                    kind=item.get("kind", "main"),
                    decimals=int(item.get("decimals", 0)),
                )
                for item in raw.get("currencies", [])
            ],
            pity_systems=[parse_pity_system(item) for item in raw["pitySystems"]],
            banners=[parse_banner(item) for item in raw.get("banners", [])],
            recharge_packs=[parse_recharge_pack(item) for item in raw.get("rechargePacks", [])],
            exchange_rates=[
                ExchangeRate(
                    from_currency_id=str(item["fromCurrencyId"]),
                    to_currency_id=str(item["toCurrencyId"]),
                    rate=to_decimal(item["rate"]),
                )
                for item in raw.get("exchangeRates", [])
            ],
        )
    except KeyError as exc:
        raise ValueError(f"Game config is missing required key {exc}") from exc
    except (TypeError, AttributeError) as exc:
        raise ValueError(f"Game config has an unexpected shape: {exc}") from exc

    if not config.pity_systems:
        raise ValueError("Game config must define at least one pity system.")
    logger.debug(
        "Parsed game config %s: %d banners, %d packs",
        config.id,
        len(config.banners),
        len(config.recharge_packs),
    )
    return config


def load_game_config(path: str | Path | None = None) -> GameConfig:
    """Load a game configuration from JSON, defaulting to the bundled sample."""

    config_path = Path(path) if path is not None else DEFAULT_GAME_CONFIG_PATH
    raw_text = config_path.read_text(encoding="utf-8")
    try:
        raw_data = json.loads(raw_text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {config_path!s}: {exc}") from exc
    if not isinstance(raw_data, Mapping):
        raise ValueError(f"Game config root in {config_path!s} must be an object.")
    return parse_game_config(raw_data)
