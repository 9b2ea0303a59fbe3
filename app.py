import streamlit as st
import pandas as pd
import altair as alt

# Custom Modules
from energiwatch.config import FIXED_TARIFF_RATE, load_settings
from energiwatch.logger import configure_logging
from energiwatch.storage import AppStateStore, FileStorage
from energiwatch.state import StateManager
from energiwatch.ai_service import AIGateway
from energiwatch.handlers import Dashboard
from energiwatch.charts import build_chart_frame, chart_title, x_axis_title

# --- 1. Page Configuration & CSS ---
st.set_page_config(
    page_title="EnergiWatch | Bill Estimator",
    layout="wide",
    page_icon="⚡",
    initial_sidebar_state="expanded"
)

st.markdown("""
<style>
    @import url('https://fonts.googleapis.com/css2?family=Manrope:wght@400;500;600;700;800&display=swap');

    html, body, [class*="css"] {
        font-family: 'Manrope', sans-serif;
    }

    .bill-card {
        background-color: #121b2b;
        border: 1px solid #2a3b57;
        border-radius: 12px;
        padding: 16px;
        height: 100%;
    }
    .bill-card h4 { color: #9db0ca; font-size: 0.85rem; margin: 0 0 6px 0; }
    .bill-card .value { color: #e7edf7; font-size: 1.6rem; font-weight: 700; }
    .over { border-color: #ef4444; }
    .under { border-color: #10b981; }
</style>
""", unsafe_allow_html=True)

configure_logging()


@st.cache_resource
def init_system():
    """One gateway per process, so the local fallback series stay stable across sessions."""
    settings = load_settings()
    return settings, AIGateway(settings)


settings, gateway = init_system()


def init_dashboard():
    if 'dashboard' not in st.session_state:
        store = AppStateStore(FileStorage(settings.storage_path))
        state = StateManager(store).initialize()
        dashboard = Dashboard(state, gateway, budget=settings.default_budget)
        with st.spinner("Preparing your household data..."):
            st.session_state.view_model = dashboard.load_initial()
        st.session_state.dashboard = dashboard
    return st.session_state.dashboard


dashboard = init_dashboard()
state = dashboard.state


def run(handler, *args, spinner=None):
    if spinner:
        with st.spinner(spinner):
            st.session_state.view_model = handler(*args)
    else:
        st.session_state.view_model = handler(*args)


def card(col, title, value, over=None):
    css = "" if over is None else ("over" if over else "under")
    col.markdown(
        f'<div class="bill-card {css}"><h4>{title}</h4><div class="value">{value}</div></div>',
        unsafe_allow_html=True,
    )


# --- 2. Sidebar ---
with st.sidebar:
    st.title("⚡ EnergiWatch")
    st.caption(f"Fixed tariff: {FIXED_TARIFF_RATE * 100:.2f} sen/kWh")

    st.subheader("Budget")
    budget = st.number_input("Monthly budget (RM)", min_value=1.0, value=float(dashboard.budget), step=10.0)
    if budget != dashboard.budget:
        run(dashboard.handle_budget_change, budget, spinner="Generating energy optimisation advice...")

    st.subheader("Usage Mode")
    is_always_on = st.toggle("24/7 mode", value=state.get_usage_mode() == "24/7",
                             help="Switch between on-demand and 24/7 usage patterns.")
    mode = "24/7" if is_always_on else "on-demand"
    if mode != state.get_usage_mode():
        run(dashboard.handle_usage_mode_toggle, mode, spinner=f"Updating recommendations for {mode} mode...")

    st.divider()
    if st.button("Generate AI Demo Data", type="primary", use_container_width=True):
        run(dashboard.handle_ai_demo_data, spinner="Generating AI demo data...")
    if st.button("Regenerate AI Recommendations", use_container_width=True):
        run(dashboard.handle_ai_recommendations, spinner="Generating AI recommendations...")

    if st.session_state.view_model.is_ai_generated:
        st.success("Data source: AI-generated")
    else:
        st.info("Data source: Local fallback")

vm = st.session_state.view_model
overview = vm.overview

# --- 3. Bill Overview ---
st.subheader("Bill Overview")
c1, c2, c3, c4 = st.columns(4)
card(c1, "Estimated Bill", f"RM{overview.current_bill:.2f}", overview.is_over_budget)
card(c2, "Budget", f"RM{overview.target_bill:.2f}")
card(c3, "Solar Savings", f"RM{overview.solar_savings:.2f}")
card(c4, "Bill After Solar", f"RM{overview.bill_after_solar:.2f}", overview.is_over_budget_after_solar)

status = "over" if overview.is_over_budget else "under"
status_solar = "over" if overview.is_over_budget_after_solar else "under"
st.caption(
    f"Before solar you are {overview.abs_percent_diff}% {status} budget; "
    f"after solar {overview.abs_percent_diff_after_solar}% {status_solar}."
)

for notice in vm.notices:
    st.warning(notice)

tab_chart, tab_appliances, tab_advice = st.tabs(["Energy", "Appliances", "Recommendations"])

# --- 4. Energy Chart ---
with tab_chart:
    view = st.radio("View", ["day", "week", "month"], index=["day", "week", "month"].index(vm.view),
                    horizontal=True, format_func=str.title)
    if view != vm.view:
        run(dashboard.handle_view_toggle, view)
        vm = st.session_state.view_model

    chart_df = build_chart_frame(vm.usage_chart, vm.solar_chart, vm.view)
    if chart_df.empty:
        st.info("No energy data yet. Generate demo data to get started.")
    else:
        chart = alt.Chart(chart_df).mark_area(opacity=0.25, line=True, interpolate='monotone').encode(
            x=alt.X('period:N', sort=alt.SortField('order'), title=x_axis_title(vm.view)),
            y=alt.Y('kwh:Q', title='Energy (kWh)', stack=None),
            color=alt.Color('series:N', scale=alt.Scale(range=['#3b82f6', '#f59e0b']), title=None),
            tooltip=[alt.Tooltip('tooltip:N', title='Energy')]
        ).properties(title=chart_title(vm.view), height=340)
        st.altair_chart(chart.interactive(), use_container_width=True)

# --- 5. Appliances ---
with tab_appliances:
    appliances = state.get_appliances()
    if not appliances:
        st.info("No appliances yet.")
    for appliance in appliances:
        col_name, col_kwh, col_essential, col_continuous = st.columns([3, 2, 1.2, 1.2])
        col_name.markdown(f"**{appliance.name}**  \n{appliance.power_watts:.0f} W · {appliance.typical_daily_hours:g} h/day")
        col_kwh.metric("Monthly", f"{appliance.daily_kwh * 30:.1f} kWh")
        essential_label = "Essential" if appliance.is_essential else "Non-essential"
        if col_essential.button(essential_label, key=f"ess_{appliance.id}"):
            run(dashboard.handle_essential_toggle, appliance.id)
            st.rerun()
        continuous_label = "24/7" if appliance.is_continuously_on else "On demand"
        if col_continuous.button(continuous_label, key=f"cont_{appliance.id}"):
            run(dashboard.handle_continuous_toggle, appliance.id)
            st.rerun()

    if appliances:
        table = pd.DataFrame([a.to_dict() for a in appliances])
        with st.expander("Raw appliance data", expanded=False):
            st.dataframe(table, use_container_width=True, hide_index=True)

# --- 6. Recommendations ---
with tab_advice:
    if vm.recommendations:
        st.markdown(vm.recommendations)
    else:
        st.info("Press 'Regenerate AI Recommendations' to get savings advice.")
    st.caption(f"Current estimated monthly bill: RM{overview.current_bill:.2f}")

st.caption("© 2026 EnergiWatch. All rights reserved.")
