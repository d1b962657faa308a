"""
Dashboard Components for FX Pulse.
Renders the latest prediction with price, moving averages and Bollinger Bands.
"""

import streamlit as st
import pandas as pd
import plotly.graph_objects as go
from typing import Dict
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from core.config import AppSettings, EngineConfig
from core.data_fetcher import DataFetcher
from core.engine import PredictionEngine
from storage.models import CycleOutcome, CycleStatus, Direction, FetchResult, PriceSeries

logger = logging.getLogger(__name__)

DIRECTION_COLORS = {
    Direction.BULLISH: "rise-box",
    Direction.OVERSOLD_CORRECTION: "rise-box",
    Direction.BEARISH: "drop-box",
    Direction.OVERBOUGHT_CORRECTION: "drop-box",
    Direction.STABLE: "flat-box",
}


@st.cache_resource
def get_services() -> Dict:
    """Get cached service instances; the engine lives for the whole session."""
    settings = AppSettings.from_env()
    config = EngineConfig()
    return {
        "settings": settings,
        "config": config,
        "engine": PredictionEngine(config),
        "fetcher": DataFetcher(settings, max_bars=config.max_bars),
    }


def indicator_frame(series: PriceSeries, engine: PredictionEngine) -> pd.DataFrame:
    """Closes with SMA, EMA and Bollinger Bands aligned on the date index."""
    df = series.to_series().to_frame("close")
    indicators = engine.calculator.compute(series)

    def align(values):
        column = [None] * len(df)
        if values:
            column[len(df) - len(values):] = values
        return column

    df["sma"] = align(indicators.sma)
    df["ema"] = align(indicators.ema)
    if indicators.bollinger:
        df["bb_upper"] = align(indicators.bollinger.upper)
        df["bb_lower"] = align(indicators.bollinger.lower)
    return df


def create_price_chart(df: pd.DataFrame, pair: str) -> go.Figure:
    """Create an interactive price chart with indicators."""
    fig = go.Figure()

    fig.add_trace(go.Scatter(x=df.index, y=df["close"], name="Close", line=dict(color="white", width=2)))
    fig.add_trace(go.Scatter(x=df.index, y=df["sma"], name="SMA20", line=dict(color="orange", width=1.5)))
    fig.add_trace(go.Scatter(x=df.index, y=df["ema"], name="EMA20", line=dict(color="deepskyblue", width=1.5)))

    if "bb_upper" in df.columns:
        fig.add_trace(go.Scatter(
            x=df.index, y=df["bb_upper"], name="Bollinger Upper",
            line=dict(color="gray", dash="dash", width=1),
        ))
        fig.add_trace(go.Scatter(
            x=df.index, y=df["bb_lower"], name="Bollinger Lower",
            line=dict(color="gray", dash="dash", width=1),
        ))

    fig.update_layout(
        height=500,
        template="plotly_dark",
        title=f"{pair} Daily Close",
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
    )
    return fig


def render_outcome(outcome: CycleOutcome) -> None:
    """Render the outcome of the cycle just run."""
    if outcome.status == CycleStatus.DATA_UNAVAILABLE:
        st.error(f"Historical data unavailable: {outcome.reason}")
        return
    if outcome.status == CycleStatus.SKIPPED:
        st.warning("Previous cycle still running, try again in a moment.")
        return
    if outcome.status == CycleStatus.IDLE:
        st.info("No new news and no significant price change. Waiting for a new prediction...")
        return

    prediction = outcome.prediction
    if prediction is None:
        return

    box = DIRECTION_COLORS.get(prediction.direction, "flat-box")
    st.markdown(f'<div class="{box}"><b>{prediction.direction_label}</b></div>', unsafe_allow_html=True)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Price", f"{prediction.price:.4f}")
    col2.metric("Estimate (24h)", f"{prediction.estimated_price:.4f}", f"{prediction.delta:+.4f}")
    col3.metric("RSI", f"{prediction.rsi:.1f}" if prediction.rsi is not None else "n/a")
    col4.metric("Sentiment", f"{prediction.average_sentiment:+.3f}")

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Support", f"{prediction.support:.4f}" if prediction.support is not None else "n/a")
    col2.metric("Resistance", f"{prediction.resistance:.4f}" if prediction.resistance is not None else "n/a")
    col3.metric("Bollinger Upper", f"{prediction.bollinger_upper:.4f}" if prediction.bollinger_upper is not None else "n/a")
    col4.metric("Bollinger Lower", f"{prediction.bollinger_lower:.4f}" if prediction.bollinger_lower is not None else "n/a")


def render_dashboard() -> None:
    """Run a cycle on demand and render the result."""
    services = get_services()
    settings: AppSettings = services["settings"]
    engine: PredictionEngine = services["engine"]
    fetcher: DataFetcher = services["fetcher"]

    if not st.button("🔄 Run prediction cycle", type="primary"):
        last = engine.last_prediction
        if last is not None:
            st.caption(f"Last prediction at {last.created_at:%Y-%m-%d %H:%M}")
            render_outcome(CycleOutcome(status=CycleStatus.UPDATED, prediction=last))
        return

    if engine.busy:
        render_outcome(CycleOutcome(status=CycleStatus.SKIPPED, reason="cycle already running"))
        return

    with st.spinner("Fetching prices and news..."):
        price_result: FetchResult = fetcher.fetch_price_series()
        news_result: FetchResult = fetcher.fetch_news()

    outcome = engine.run_cycle(price_result, news_result)
    render_outcome(outcome)

    if price_result.ok and price_result.data is not None:
        df = indicator_frame(price_result.data, engine)
        st.plotly_chart(create_price_chart(df, settings.pair), use_container_width=True)

    if news_result.ok and news_result.data:
        st.subheader("📰 Latest News")
        news_df = pd.DataFrame([item.to_dict() for item in news_result.data])
        st.dataframe(news_df[["title", "sentiment", "published_at"]], use_container_width=True)
