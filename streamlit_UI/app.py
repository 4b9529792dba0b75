"""Streamlit front-end for the gacha probability and recharge planner."""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from decimal import Decimal, InvalidOperation
from pathlib import Path

import altair as alt
import numpy as np
import pandas as pd
import streamlit as st

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from gacha_core import (
    DEFAULT_SIMULATION_RUNS,
    BannerAnalysis,
    BenefitTriggerPoint,
    DrawState,
    GameConfig,
    ShoppingPlan,
    analyze_banner,
    exact_chart_data,
    load_game_config,
    total_free_pulls,
)

CONFIG_PATH_STATE_KEY = "gacha_config_path"
BANNER_TYPE_LABELS = {
    "single_month": "单人月卡池",
    "birthday": "生日卡池",
    "mixed": "混池",
    "daily": "日卡池",
}


@st.cache_resource
def get_game_config(path: str | None) -> GameConfig:
    """Load the game configuration once per session."""

    return load_game_config(path)


def safe_int_string(raw: str) -> str:
    """Return a non-negative integer string, or '0' for unusable input."""

    text = raw.strip()
    if not text:
        return "0"
    try:
        value = Decimal(text)
    except InvalidOperation:
        return "0"
    if not value.is_finite() or value < 0:
        return "0"
    return str(int(value))


def ensure_session_state_defaults(config: GameConfig) -> None:
    """Populate Streamlit session state with expected default entries."""

    st.session_state.setdefault("banner_id", config.banners[0].id if config.banners else "")
    st.session_state.setdefault("target_count", 1)
    st.session_state.setdefault("pity_counter", 0)
    st.session_state.setdefault("featured_guaranteed", False)
    st.session_state.setdefault("owned_main", "0")
    st.session_state.setdefault("owned_premium", "0")
    st.session_state.setdefault("simulation_runs", DEFAULT_SIMULATION_RUNS)
    st.session_state.setdefault("simulation_seed", 42)


def banner_label(config: GameConfig, banner_id: str) -> str:
    banner = config.banner(banner_id)
    if banner is None:
        return banner_id
    type_label = BANNER_TYPE_LABELS.get(banner.type or "", "卡池")
    return f"{banner.name} · {type_label}"


def render_inputs(config: GameConfig) -> None:
    """Render the input card."""

    with st.container(border=True):
        st.markdown("**输入区**")
        st.selectbox(
            "卡池",
            options=[banner.id for banner in config.banners],
            key="banner_id",
            format_func=lambda banner_id: banner_label(config, banner_id),
        )
        col_target, col_pity = st.columns(2)
        col_target.number_input("目标数量", min_value=1, max_value=7, step=1, key="target_count")
        col_pity.number_input("当前已垫抽数", min_value=0, max_value=200, step=1, key="pity_counter")
        st.checkbox("大保底（下一次五星必为 UP）", key="featured_guaranteed")

        main_name = config.currency_name(config.default_main_currency_id, "主货币")
        premium_name = config.currency_name(config.default_premium_currency_id, "付费货币")
        col_main, col_premium = st.columns(2)
        col_main.text_input(f"持有{main_name}", key="owned_main")
        col_premium.text_input(f"持有{premium_name}", key="owned_premium")

        col_runs, col_seed = st.columns(2)
        col_runs.number_input(
            "蒙特卡洛模拟次数", min_value=100, max_value=200_000, step=1000, key="simulation_runs"
        )
        col_seed.number_input("随机数种子", min_value=0, step=1, key="simulation_seed")


def render_probability_chart(analysis: BannerAnalysis, state: DrawState) -> None:
    """Plot simulated and exact cumulative chances side by side."""

    distribution = analysis.simulation.distribution
    if not distribution:
        st.caption("暂无模拟数据。")
        return

    pulls = np.array([point.pulls for point in distribution], dtype=int)
    cumulative = np.cumsum([point.probability for point in distribution]) * 100.0
    simulated = pd.DataFrame({"pulls": pulls, "chance": cumulative, "source": "模拟"})
    exact_series = exact_chart_data(analysis.pity, state, analysis.target_count)
    exact = pd.DataFrame(exact_series, columns=["pulls", "chance"]).assign(source="精确")
    chart_data = pd.concat([simulated, exact], ignore_index=True)

    chart = (
        alt.Chart(chart_data)
        .mark_line(interpolate="step-after")
        .encode(
            x=alt.X("pulls:Q", title="抽数"),
            y=alt.Y("chance:Q", title="累计概率 (%)", scale=alt.Scale(domain=(0, 100))),
            color=alt.Color("source:N", title="来源"),
            tooltip=[
                alt.Tooltip("pulls:Q", title="抽数"),
                alt.Tooltip("chance:Q", title="累计概率", format=".2f"),
                alt.Tooltip("source:N", title="来源"),
            ],
        )
        .properties(height=260)
    )
    st.altair_chart(chart.configure_axis(gridColor="#e2e8f0"), use_container_width=True)


def render_summary(analysis: BannerAnalysis, config: GameConfig) -> None:
    percentiles = analysis.simulation.percentiles
    main_name = config.currency_name(config.default_main_currency_id, "主货币")
    with st.container(border=True):
        st.markdown("**抽数分布**")
        cols = st.columns(4)
        cols[0].metric("欧皇 (10%)", f"{percentiles.p10} 抽")
        cols[1].metric("平均 (50%)", f"{percentiles.p50} 抽")
        cols[2].metric("非酋 (90%)", f"{percentiles.p90} 抽")
        cols[3].metric("期望", f"{analysis.simulation.expected_value:.1f} 抽")
        st.write(
            f"现有资源约 {analysis.owned_equivalent:.0f} {main_name}，可抽 {analysis.available_pulls} 次，"
            f"达成目标概率 {analysis.chance_within_owned:.2f}%。"
        )
        st.caption(f"计算耗时 {analysis.compute_seconds:.2f} 秒")


def render_shopping_plan(title: str, plan: ShoppingPlan, need: Decimal) -> None:
    """Render one shopping plan table."""

    st.markdown(f"**{title}**")
    if plan.needed_currency == 0:
        st.success("现有资源已足够，无需充值。")
        return
    if not plan.is_feasible:
        st.error(f"没有可行的充值方案，仍缺 {need:.0f}。")
        return
    st.write(
        f"需补充 {plan.needed_currency}，共花费 ¥{plan.total_cost}，"
        f"获得 {plan.gained_currency}（溢出 {plan.overfill_currency}）。"
    )
    rows = pd.DataFrame(
        [
            {
                "礼包": item.pack_name + ("（首充）" if item.is_bonus_variant else ""),
                "数量": item.count,
                "单价": float(item.unit_price),
                "获得": item.gained_currency,
            }
            for item in plan.items
        ]
    )
    st.dataframe(rows, hide_index=True, use_container_width=True)


def render_efficiency_table(plan: ShoppingPlan) -> None:
    if not plan.efficiencies:
        return
    rows = pd.DataFrame(
        [
            {
                "礼包": row.pack_name + ("（首充）" if row.is_bonus_variant else ""),
                "价格": float(row.price),
                "获得": row.gained_currency,
                "每单位价格": float(row.cost_per_currency),
                "每抽价格": float(row.cost_per_reference_pull),
            }
            for row in plan.efficiencies
        ]
    )
    with st.expander("礼包性价比"):
        st.dataframe(rows, hide_index=True, use_container_width=True)


def render_benefits(analysis: BannerAnalysis) -> None:
    """Chart free-draw rewards and the effective cost per draw."""

    points = analysis.benefit_points
    with st.container(border=True):
        st.markdown("**卡池福利**")
        if not points:
            st.caption("该卡池没有额外福利。")
            return
        st.write(
            f"一次性赠送 {total_free_pulls(points, 'one_time')} 抽，"
            f"累计奖励 {total_free_pulls(points, 'cumulative')} 抽。"
        )
        costs = pd.DataFrame(
            {
                "paid": [point.paid_pulls for point in analysis.effective_costs],
                "total": [point.total_pulls for point in analysis.effective_costs],
                "avg": [float(point.avg_cost_per_pull) for point in analysis.effective_costs],
            }
        )
        chart = (
            alt.Chart(costs[costs["paid"] > 0])
            .mark_line(color="#6366f1")
            .encode(
                x=alt.X("paid:Q", title="付费抽数"),
                y=alt.Y("avg:Q", title="平均每抽成本"),
                tooltip=[
                    alt.Tooltip("paid:Q", title="付费抽数"),
                    alt.Tooltip("total:Q", title="总抽数"),
                    alt.Tooltip("avg:Q", title="平均每抽成本", format=".2f"),
                ],
            )
            .properties(height=220)
        )
        st.altair_chart(chart, use_container_width=True)


def trigger_table(points: Sequence[BenefitTriggerPoint]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "触发抽数": point.trigger_pulls,
                "类型": "一次性" if point.kind == "one_time" else "累计",
                "免费抽": point.free_pulls,
                "自选箱": "是" if point.has_box else "",
            }
            for point in points
        ]
    )


def main() -> None:
    """Entry point used by Streamlit."""

    logging.basicConfig(level=logging.INFO)
    st.set_page_config(page_title="Gacha Planner", layout="centered")

    config = get_game_config(st.session_state.get(CONFIG_PATH_STATE_KEY))
    ensure_session_state_defaults(config)

    st.title("抽卡分析与氪金性价比")
    st.caption(config.name)
    render_inputs(config)

    state = DrawState(
        pity_counter=int(st.session_state.pity_counter),
        is_featured_guaranteed=bool(st.session_state.featured_guaranteed),
    )
    with st.spinner("正在模拟…"):
        analysis = analyze_banner(
            config,
            st.session_state.banner_id,
            int(st.session_state.target_count),
            state=state,
            owned_main=safe_int_string(st.session_state.owned_main),
            owned_premium=safe_int_string(st.session_state.owned_premium),
            simulation_runs=int(st.session_state.simulation_runs),
            simulation_seed=int(st.session_state.simulation_seed),
        )

    render_summary(analysis, config)
    with st.container(border=True):
        st.markdown("**累计概率曲线**")
        render_probability_chart(analysis, state)

    with st.container(border=True):
        render_shopping_plan("按 50% 分位充值", analysis.plan_p50, analysis.need_for_p50)
        render_shopping_plan("按 90% 分位充值", analysis.plan_p90, analysis.need_for_p90)
        render_efficiency_table(analysis.plan_p90)

    render_benefits(analysis)
    if analysis.benefit_points:
        st.dataframe(trigger_table(analysis.benefit_points), hide_index=True)


if __name__ == "__main__":
    main()
