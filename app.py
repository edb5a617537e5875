# app.py
import streamlit as st

from smith_manoeuvre.calculators.projection import InvalidStrategyConfig
from smith_manoeuvre.components.charts import projection_charts, tax_breakdown_chart
from smith_manoeuvre.components.forms import etf_catalogue, strategy_form
from smith_manoeuvre.components.report import build_pdf, export_json
from smith_manoeuvre.components.tables import (
    breakdown_frame,
    format_currency,
    format_percent,
    yearly_frame,
)
from smith_manoeuvre.logging_config import configure_logging
from smith_manoeuvre.orchestrator import run_strategy


# ---------- Page config ----------
st.set_page_config(
    page_title="Smith Manoeuvre Calculator",
    layout="wide",
    initial_sidebar_state="auto",
)

# Hide Streamlit's default menu and footer
st.markdown(
    """
<style>
#MainMenu {visibility: hidden;}
footer {visibility: hidden;}
.block-container { padding: 1.5rem 2rem; max-width: 1400px; margin: auto; }
div[data-testid="stMetric"] {
    background: #FFFFFF;
    border-radius: 12px;
    padding: 1rem;
    box-shadow: 0 2px 8px rgba(0,0,0,0.05);
    border: 1px solid #E6ECE9;
}
div.stPlotlyChart {
    background: #FFFFFF;
    border-radius: 12px;
    padding: 0.75rem;
    border: 1px solid #E6ECE9;
}
</style>
""",
    unsafe_allow_html=True,
)

# ---------- Session boot ----------
if "logging_configured" not in st.session_state:
    configure_logging(level="INFO")
    st.session_state["logging_configured"] = True
st.session_state.setdefault("form_defaults", {})
st.session_state.setdefault("custom_etfs", [])
st.session_state.setdefault("export_pdf_bytes", None)

st.title("Smith Manoeuvre Calculator")
st.caption("Turn your non-deductible mortgage into a tax-deductible investment loan.")

# ====== SIDEBAR: FORM ======
st.sidebar.header("Strategy Inputs")
inputs = strategy_form()

try:
    outcome = run_strategy(inputs, catalogue=etf_catalogue())
except InvalidStrategyConfig as exc:
    st.error(f"Cannot project this strategy: {exc}")
    st.stop()

summary = outcome.projection.summary
capitalized = outcome.config.capitalize_interest

# ====== TAX ======
st.subheader(f"Tax Profile for {inputs['name'] or 'Investor'}")
t1, t2, t3 = st.columns(3)
t1.metric("Marginal tax rate", f"{outcome.tax.marginal_rate * 100:.2f}%")
t2.metric("Total income tax", format_currency(outcome.tax.total_tax))
t3.metric("Average tax rate", f"{outcome.tax.average_rate * 100:.2f}%")
with st.expander("Bracket breakdown", expanded=False):
    st.dataframe(breakdown_frame(outcome.tax), use_container_width=True)
    st.plotly_chart(tax_breakdown_chart(outcome.tax), use_container_width=True)

st.divider()

# ====== SUMMARY ======
st.subheader("Projection Summary")
c1, c2, c3 = st.columns(3)
c1.metric("Projected net worth", format_currency(summary.final_net_worth))
c1.caption(f"After {outcome.config.horizon_years} years")
c2.metric("Total net gain", format_currency(summary.total_net_gain))
c2.caption("Net worth plus refunds, less interest")
c3.metric("Return on capital", format_percent(summary.return_on_capital))
c3.caption("Relative to initial investment" if summary.total_out_of_pocket <= 0 else "Based on net cash flow")

d1, d2, d3, d4 = st.columns(4)
d1.metric("Investment value", format_currency(summary.final_investment_value))
d2.metric("Final HELOC balance", format_currency(summary.final_loan_balance))
d3.metric("Total tax refunds", format_currency(summary.total_tax_refunds))
d4.metric("Total interest paid", format_currency(summary.total_interest_paid))
st.caption(
    f"Expected return {outcome.expected_return * 100:.2f}%/yr on {inputs['etf_symbol']}. "
    f"Out of pocket over the horizon: {format_currency(summary.total_out_of_pocket)}."
)

# ====== CHARTS ======
chart_figs = projection_charts(outcome.projection)
g1, g2 = st.columns(2)
for col, (title, fig) in zip((g1, g2), chart_figs.items()):
    with col:
        st.subheader(title)
        st.plotly_chart(fig, use_container_width=True)

# ====== YEARLY TABLE ======
st.markdown("### Yearly Projection")
df = yearly_frame(outcome.projection, include_out_of_pocket=not capitalized)
money_cols = [c for c in df.columns if c != "Year"]
st.dataframe(
    df.style.format({c: "${:,.0f}" for c in money_cols})
    .set_properties(subset=["Net Worth"], **{"background-color": "#FFF3CD", "font-weight": "bold"}),
    use_container_width=True,
    height=350,
)

# ====== EXPORT ======
st.sidebar.divider()
st.sidebar.header("Export")
st.sidebar.download_button(
    "⬇️ CSV (yearly projection)",
    data=df.to_csv(index=False).encode("utf-8"),
    file_name="smith_manoeuvre_projection.csv",
    mime="text/csv",
)
st.sidebar.download_button(
    "⬇️ Download JSON",
    data=export_json(outcome),
    file_name="smith_manoeuvre.json",
    mime="application/json",
)
if st.sidebar.button("Build PDF"):
    st.session_state["export_pdf_bytes"] = build_pdf(outcome, chart_figs)
if st.session_state.get("export_pdf_bytes"):
    st.sidebar.download_button(
        "⬇️ Download PDF",
        data=st.session_state["export_pdf_bytes"],
        file_name="smith_manoeuvre.pdf",
        mime="application/pdf",
    )
