import streamlit as st

from ..calculators.taxes import province_options
from ..market_data import DEFAULT_ETFS, custom_etf, fetch_etf_return, find_etf, normalize_symbol
from ..orchestrator import DEFAULT_INPUTS

# Stable widget keys so we can programmatically set values on load
WIDGET_KEYS = {
    "name": "in_name",
    "province": "in_province",
    "income": "in_income",
    "heloc_amount": "in_heloc_amount",
    "heloc_rate": "in_heloc_rate_pct",
    "periodic_contribution": "in_periodic_contribution",
    "contribution_frequency": "in_contribution_frequency",
    "etf_symbol": "in_etf_symbol",
    "custom_symbol": "in_custom_symbol",
    "years": "in_years",
    "capitalize_interest": "in_capitalize_interest",
    "apply_refund_to_loan": "in_apply_refund_to_loan",
}

FREQUENCIES = ["Monthly", "Annual"]


def _d(key, fallback=None):
    if fallback is None:
        fallback = DEFAULT_INPUTS.get(key)
    return st.session_state.get("form_defaults", {}).get(key, fallback)


def etf_catalogue():
    """Default ETFs plus any symbols added during this session."""
    return list(DEFAULT_ETFS) + st.session_state.get("custom_etfs", [])


def _add_custom_symbol(symbol: str):
    key = normalize_symbol(symbol)
    if not key:
        return
    if find_etf(key, etf_catalogue()) is None:
        with st.spinner(f"Fetching 5-year history for {key}..."):
            expected = fetch_etf_return(key)
        st.session_state.setdefault("custom_etfs", []).append(custom_etf(key, expected))
    st.session_state["form_defaults"] = {**st.session_state.get("form_defaults", {}), "etf_symbol": key}
    st.session_state.pop(WIDGET_KEYS["etf_symbol"], None)
    st.rerun()


def strategy_form():
    # -------- Profile --------
    st.sidebar.header("Profile")
    name = st.sidebar.text_input("Name", value=_d("name"), key=WIDGET_KEYS["name"])

    provinces = province_options()
    codes = list(provinces)
    prov_default = _d("province")
    province = st.sidebar.selectbox(
        "Province", codes,
        index=codes.index(prov_default) if prov_default in codes else 0,
        format_func=lambda c: provinces.get(c, c),
        key=WIDGET_KEYS["province"],
        help="Sets the provincial brackets used for your marginal rate.",
    )
    income = st.sidebar.number_input(
        "Annual income ($)", min_value=0.0, step=1000.0,
        value=float(_d("income")), key=WIDGET_KEYS["income"],
        help="Taxable income; drives the marginal rate applied to the interest deduction.",
    )

    # -------- HELOC --------
    st.sidebar.header("HELOC")
    heloc_amount = st.sidebar.number_input(
        "Available HELOC limit ($)", min_value=0.0, step=5000.0,
        value=float(_d("heloc_amount")), key=WIDGET_KEYS["heloc_amount"],
        help="Drawn on day one and invested in full.",
    )
    heloc_rate_pct = st.sidebar.number_input(
        "HELOC interest rate (%)", min_value=0.0, max_value=100.0, step=0.1,
        value=float(_d("heloc_rate")) * 100.0, key=WIDGET_KEYS["heloc_rate"],
    )
    periodic_contribution = st.sidebar.number_input(
        "Periodic HELOC addition ($)", min_value=0.0, step=100.0,
        value=float(_d("periodic_contribution")), key=WIDGET_KEYS["periodic_contribution"],
        help="New borrowing invested each period, e.g. freed-up mortgage principal.",
    )
    freq_default = _d("contribution_frequency")
    contribution_frequency = st.sidebar.selectbox(
        "Contribution frequency", FREQUENCIES,
        index=FREQUENCIES.index(freq_default) if freq_default in FREQUENCIES else 0,
        key=WIDGET_KEYS["contribution_frequency"],
    )

    # -------- Investment --------
    st.sidebar.header("Investment")
    catalogue = etf_catalogue()
    symbols = [etf.symbol for etf in catalogue]
    labels = {etf.symbol: etf.label for etf in catalogue}
    etf_default = _d("etf_symbol")
    etf_symbol = st.sidebar.selectbox(
        "Target ETF", symbols,
        index=symbols.index(etf_default) if etf_default in symbols else 0,
        format_func=lambda s: labels.get(s, s),
        key=WIDGET_KEYS["etf_symbol"],
    )
    selected = find_etf(etf_symbol, catalogue)
    if selected:
        st.sidebar.caption(f"{selected.description}: expected return {selected.default_return * 100:.2f}%/yr")

    with st.sidebar.expander("Add symbol", expanded=False):
        custom = st.text_input("Ticker", placeholder="e.g. AAPL, QQQ, ZSP.TO", key=WIDGET_KEYS["custom_symbol"])
        if st.button("Search", key="btn_add_symbol"):
            _add_custom_symbol(custom)
        st.caption("Uses the 5-year annualized price return; falls back to a default if unavailable.")

    years = st.sidebar.number_input(
        "Investment horizon (years)", min_value=1, max_value=40, step=1,
        value=int(_d("years")), key=WIDGET_KEYS["years"],
    )

    # -------- Assumptions --------
    st.sidebar.header("Assumptions")
    capitalize_interest = st.sidebar.checkbox(
        "Capitalize interest", value=bool(_d("capitalize_interest")),
        key=WIDGET_KEYS["capitalize_interest"],
        help="Borrow the interest from the HELOC instead of paying it from your cash flow.",
    )
    apply_refund_to_loan = st.sidebar.checkbox(
        "Apply tax refund to HELOC", value=bool(_d("apply_refund_to_loan")),
        key=WIDGET_KEYS["apply_refund_to_loan"],
        disabled=not capitalize_interest,
        help="When capitalizing, use each year's refund to pay the HELOC down.",
    )

    return {
        "name": name,
        "province": province,
        "income": float(income),
        "heloc_amount": float(heloc_amount),
        "heloc_rate": float(heloc_rate_pct) / 100.0,
        "periodic_contribution": float(periodic_contribution),
        "contribution_frequency": contribution_frequency,
        "etf_symbol": etf_symbol,
        "years": int(years),
        "capitalize_interest": bool(capitalize_interest),
        "apply_refund_to_loan": bool(apply_refund_to_loan),
    }
