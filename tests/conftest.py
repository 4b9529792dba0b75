"""Shared fixtures for the gacha core test-suite."""

from __future__ import annotations

from decimal import Decimal

import pytest

from gacha_core import (
    BannerBenefit,
    BenefitReward,
    BenefitStep,
    PityConfig,
    RechargePack,
    load_game_config,
)


@pytest.fixture
def genshin_pity() -> PityConfig:
    """Character banner rules: soft pity from 74, hard pity 90, 50/50 then guarantee."""

    return PityConfig(
        id="character_event",
        base_rate=0.006,
        soft_pity_start=74,
        soft_pity_increase_per_pull=0.06,
        hard_pity=90,
        featured_win_rate=0.5,
        guaranteed_after_loses=1,
    )


@pytest.fixture
def flat_pity() -> PityConfig:
    """Short pity without soft ramp, small enough to reason about by hand."""

    return PityConfig(
        base_rate=0.25,
        soft_pity_start=None,
        soft_pity_increase_per_pull=None,
        hard_pity=4,
        featured_win_rate=1.0,
        guaranteed_after_loses=0,
    )


@pytest.fixture
def sample_benefits() -> list[BannerBenefit]:
    return [
        BannerBenefit(
            kind="one_time",
            steps=[BenefitStep(trigger_pulls=0, rewards=[BenefitReward("free_pulls", 10)])],
        ),
        BannerBenefit(
            kind="cumulative",
            steps=[
                BenefitStep(trigger_pulls=30, rewards=[BenefitReward("free_pulls", 5)]),
                BenefitStep(trigger_pulls=60, rewards=[BenefitReward("free_pulls", 5)]),
                BenefitStep(
                    trigger_pulls=120,
                    rewards=[BenefitReward("select_up_five_star_box", 1)],
                ),
            ],
        ),
    ]


@pytest.fixture
def direct_packs() -> list[RechargePack]:
    return [
        RechargePack(
            id="crystal_6",
            name="60",
            kind="direct",
            price=Decimal("6"),
            premium_amount=Decimal("60"),
            first_purchase_bonus=Decimal("60"),
        ),
        RechargePack(
            id="crystal_30",
            name="300",
            kind="direct",
            price=Decimal("30"),
            premium_amount=Decimal("330"),
            first_purchase_bonus=Decimal("270"),
        ),
        RechargePack(
            id="crystal_98",
            name="980",
            kind="direct",
            price=Decimal("98"),
            premium_amount=Decimal("1090"),
            first_purchase_bonus=Decimal("870"),
        ),
        RechargePack(
            id="crystal_648",
            name="6480",
            kind="direct",
            price=Decimal("648"),
            premium_amount=Decimal("8080"),
            first_purchase_bonus=Decimal("4880"),
        ),
    ]


@pytest.fixture
def sample_config():
    return load_game_config()
