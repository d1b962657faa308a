"""
FX Pulse dashboard.

Run with `streamlit run app/main.py`. Each button press fetches prices
and news, runs one engine cycle and charts the series with its bands.
"""

import streamlit as st
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.config import AppSettings

PAGE_CSS = """
<style>
    [data-testid="stMetricValue"] { font-size: 1.5rem; }
    .rise-box, .drop-box, .flat-box {
        padding: 0.9rem 1.1rem;
        margin-bottom: 1rem;
        border-radius: 0.4rem;
        font-size: 1.1rem;
    }
    .rise-box { background: rgba(46, 160, 67, 0.12); border-left: 5px solid #2ea043; }
    .drop-box { background: rgba(218, 54, 51, 0.12); border-left: 5px solid #da3633; }
    .flat-box { background: rgba(139, 148, 158, 0.12); border-left: 5px solid #8b949e; }
</style>
"""


def render_sidebar(settings: AppSettings) -> None:
    with st.sidebar:
        st.title("💱 FX Pulse")
        st.caption(f"Tracking {settings.pair}")
        st.divider()

        st.markdown("### Sources")
        if settings.alpha_vantage_api_key:
            st.success("Prices: Alpha Vantage FX_DAILY")
        else:
            st.info(f"Prices: yfinance ({settings.symbol})")
        st.info(f"News: Google News RSS ({settings.news_language})")

        st.markdown("### Alerts")
        if settings.telegram_bot_token and settings.telegram_chat_id:
            st.success("Telegram: enabled")
        else:
            st.info("Telegram: disabled")

        st.divider()
        st.caption("Algorithmic estimate for study purposes, not financial advice.")


def main():
    st.set_page_config(page_title="FX Pulse", page_icon="💱", layout="wide")
    st.markdown(PAGE_CSS, unsafe_allow_html=True)

    settings = AppSettings.from_env()
    render_sidebar(settings)

    st.title(f"{settings.pair} 24h Outlook")
    st.markdown("*SMA, EMA, Bollinger Bands, RSI and news sentiment combined into one direction call*")

    # Imported here so set_page_config runs before any other Streamlit call
    from app.components.dashboard import render_dashboard

    render_dashboard()


if __name__ == "__main__":
    main()
