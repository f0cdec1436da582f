import logging

import streamlit as st
import pandas as pd
import plotly.express as px

from config import (
    DEFAULT_HEALTHCARE,
    DEFAULT_INVESTMENTS,
    DEFAULT_MORTGAGE,
    DEFAULT_PROFILE,
    DEFAULT_RENT,
    DEFAULT_TAX,
    build_inputs,
    configure_logging,
    store_path,
)
from export import comparison_chart, export_csv, generate_html_report
from healthcare import total_cost
from models import SCENARIO_LABELS, AccountType, validate_profile
from projection import retirement_tax_breakdown, run_projection
from scenario import JsonFileStore, ScenarioImportError, ScenarioManager
from taxes import tax_bracket_breakdown

logger = logging.getLogger(__name__)

MONEY_COLUMNS = list(SCENARIO_LABELS.values())


# -----------------------------------------------
# Helper: Safe Formatter for Pandas Styler
# -----------------------------------------------
def safe_formatter(fmt):
    def formatter(x):
        if x is None or pd.isna(x):
            return ""
        return fmt.format(x)
    return formatter


def style_money(df, columns=None):
    columns = columns or [c for c in df.columns if c in MONEY_COLUMNS]
    return df.style.format({c: safe_formatter('${:,.2f}') for c in columns})


def default_parameters():
    return {
        'profile': dict(DEFAULT_PROFILE),
        'rent': dict(DEFAULT_RENT),
        'mortgage': dict(DEFAULT_MORTGAGE),
        'investments': dict(DEFAULT_INVESTMENTS),
        'tax': None,
        'healthcare': None,
    }


def merged(defaults, saved):
    return {**defaults, **(saved or {})}


# -----------------------------------------------
# Sidebar: inputs
# -----------------------------------------------
def sidebar_inputs(params):
    """
    Draws the input form seeded from params and returns the parameters it holds now,
    in the same shape build_inputs and the scenario store use.
    """
    p = merged(DEFAULT_PROFILE, params.get('profile'))
    r = merged(DEFAULT_RENT, params.get('rent'))
    m = merged(DEFAULT_MORTGAGE, params.get('mortgage'))
    inv = merged(DEFAULT_INVESTMENTS, params.get('investments'))

    st.sidebar.title("Your Information")

    st.sidebar.header("1️⃣ Personal Details")
    profile = {
        'start_age': st.sidebar.number_input("Current Age", 18, 99, int(p['start_age'])),
        'retirement_age': st.sidebar.number_input("Planned Retirement Age", 19, 100, int(p['retirement_age'])),
        'life_expectancy': st.sidebar.number_input("Life Expectancy", 20, 120, int(p['life_expectancy']),
                                                   help="Plan through this age for safety"),
        'inflation_rate': st.sidebar.slider("Inflation Rate", 0.0, 0.15, float(p['inflation_rate']), 0.005),
    }
    with st.sidebar.expander("Income & Spending", expanded=True):
        profile['social_security_monthly'] = st.number_input(
            "Monthly Social Security", 0.0, 20_000.0, float(p['social_security_monthly']), step=100.0)
        profile['other_income_monthly'] = st.number_input(
            "Other Monthly Retirement Income", 0.0, 50_000.0, float(p['other_income_monthly']), step=100.0,
            help="Pensions, annuities, part-time work")
        profile['pre_retirement_monthly_spend'] = st.number_input(
            "Current Monthly Spending (excluding housing)", 0.0, 100_000.0,
            float(p['pre_retirement_monthly_spend']), step=100.0)
        profile['post_retirement_monthly_spend'] = st.number_input(
            "Monthly Spending in Retirement (excluding housing)", 0.0, 100_000.0,
            float(p['post_retirement_monthly_spend']), step=100.0)

    st.sidebar.header("2️⃣ Renting")
    with st.sidebar.expander("Rent", expanded=False):
        rent = {
            'monthly_rent': st.number_input("Monthly Rent", 0.0, 50_000.0, float(r['monthly_rent']), step=50.0),
            'rent_increase_rate': st.slider("Annual Rent Increase", 0.0, 0.15, float(r['rent_increase_rate']), 0.005),
            'monthly_insurance': st.number_input("Monthly Renter's Insurance", 0.0, 5_000.0,
                                                 float(r['monthly_insurance']), step=5.0),
        }

    st.sidebar.header("3️⃣ Buying")
    with st.sidebar.expander("Mortgage & Home", expanded=False):
        mortgage = {
            'principal': st.number_input("Mortgage Amount", 0.0, 10_000_000.0, float(m['principal']), step=1_000.0,
                                         help="Loan amount, excluding the down payment"),
            'down_payment': st.number_input("Down Payment", 0.0, 10_000_000.0, float(m['down_payment']), step=1_000.0),
            'annual_rate': st.slider("Mortgage Rate", 0.0, 0.2, float(m['annual_rate']), 0.00125),
            'property_tax': st.number_input("Annual Property Tax", 0.0, 200_000.0, float(m['property_tax']), step=100.0),
            'appreciation_rate': st.slider("Home Appreciation Rate", 0.0, 0.15, float(m['appreciation_rate']), 0.005),
            'one_time_repairs': st.number_input("One-time Repairs (purchase year)", 0.0, 1_000_000.0,
                                                float(m['one_time_repairs']), step=500.0),
            'annual_maintenance': st.number_input("Annual Maintenance", 0.0, 200_000.0,
                                                  float(m['annual_maintenance']), step=100.0),
            'monthly_insurance': st.number_input("Monthly Home Insurance", 0.0, 10_000.0,
                                                 float(m['monthly_insurance']), step=10.0),
        }

    st.sidebar.header("4️⃣ Investments")
    with st.sidebar.expander("Contributions & Growth", expanded=False):
        account_types = ['non_taxable', 'taxable']
        investments = {
            'starting_balance': st.number_input("Current Investments", 0.0, 50_000_000.0,
                                                float(inv['starting_balance']), step=1_000.0),
            'monthly_contribution': st.number_input("Monthly Contribution", 0.0, 100_000.0,
                                                    float(inv['monthly_contribution']), step=50.0),
            'annual_return_rate': st.slider("Annual Investment Return", 0.0, 0.2,
                                            float(inv['annual_return_rate']), 0.005),
            'account_type': st.selectbox("Account Type", account_types,
                                         index=account_types.index(inv['account_type']),
                                         format_func=lambda t: "Roth (tax-free withdrawals)" if t == 'non_taxable'
                                         else "Traditional / taxable"),
            'tax_rate': st.slider("Flat Withdrawal Tax Rate", 0.0, 0.5, float(inv['tax_rate']), 0.01,
                                  help="Used for taxable accounts when the detailed tax model is off"),
            'include_down_payment': st.checkbox("Invest the down payment instead", value=bool(inv['include_down_payment']),
                                                help="Adds the down payment to the starting balance of every scenario"),
        }

    st.sidebar.header("5️⃣ Tax & Healthcare")
    use_tax = st.sidebar.checkbox("Use detailed tax model", value=params.get('tax') is not None)
    tax = None
    if use_tax:
        t = merged(DEFAULT_TAX, params.get('tax'))
        with st.sidebar.expander("Tax Settings", expanded=True):
            statuses = ['single', 'joint']
            tax = {
                'filing_status': st.selectbox("Filing Status", statuses, index=statuses.index(t['filing_status'])),
                'state_rate': st.slider("State Income Tax Rate", 0.0, 0.15, float(t['state_rate']), 0.0025),
                'itemize': st.checkbox("Itemize Deductions", value=bool(t['itemize'])),
                'other_deductions': st.number_input("Other Itemized Deductions", 0.0, 1_000_000.0,
                                                    float(t['other_deductions']), step=100.0),
            }

    use_healthcare = st.sidebar.checkbox("Include healthcare costs", value=params.get('healthcare') is not None)
    healthcare = None
    if use_healthcare:
        h = merged(DEFAULT_HEALTHCARE, params.get('healthcare'))
        with st.sidebar.expander("Healthcare Settings", expanded=True):
            healthcare = {
                'pre_medicare_premium': st.number_input("Monthly Premium (before 65)", 0.0, 10_000.0,
                                                        float(h['pre_medicare_premium']), step=10.0),
                'pre_medicare_deductible': st.number_input("Annual Deductible (before 65)", 0.0, 50_000.0,
                                                           float(h['pre_medicare_deductible']), step=100.0),
                'pre_medicare_out_of_pocket': st.number_input("Annual Out-of-Pocket (before 65)", 0.0, 50_000.0,
                                                              float(h['pre_medicare_out_of_pocket']), step=100.0),
                'medicare_part_b': st.number_input("Medicare Part B (monthly)", 0.0, 2_000.0,
                                                   float(h['medicare_part_b']), step=5.0),
                'medicare_part_d': st.number_input("Medicare Part D (monthly)", 0.0, 2_000.0,
                                                   float(h['medicare_part_d']), step=5.0),
                'medigap': st.number_input("Medigap (monthly)", 0.0, 2_000.0, float(h['medigap']), step=5.0),
                'medicare_out_of_pocket': st.number_input("Annual Out-of-Pocket (Medicare)", 0.0, 50_000.0,
                                                          float(h['medicare_out_of_pocket']), step=100.0),
                'include_long_term_care': st.checkbox("Long-term Care Insurance",
                                                      value=bool(h['include_long_term_care'])),
                'long_term_care_premium': st.number_input("LTC Premium (monthly)", 0.0, 10_000.0,
                                                          float(h['long_term_care_premium']), step=10.0),
                'long_term_care_start_age': st.number_input("LTC Start Age", 18, 120,
                                                            int(h['long_term_care_start_age'])),
            }

    return {
        'profile': profile,
        'rent': rent,
        'mortgage': mortgage,
        'investments': investments,
        'tax': tax,
        'healthcare': healthcare,
    }


# -----------------------------------------------
# Sidebar: saved scenarios
# -----------------------------------------------
def sidebar_scenarios(manager, current_params):
    st.sidebar.header("💾 Saved Scenarios")
    scenarios = manager.get_all_scenarios()

    with st.sidebar.expander("Save current inputs", expanded=False):
        name = st.text_input("Scenario Name")
        notes = st.text_area("Notes", "")
        if st.button("Save Scenario"):
            try:
                saved = manager.save_scenario(name, notes, current_params)
                st.success(f"Saved '{saved.name}'")
            except ValueError as e:
                st.error(str(e))

    if scenarios:
        with st.sidebar.expander("Load or delete", expanded=False):
            options = {s.id: f"{s.name} ({s.updated_at:%Y-%m-%d})" for s in scenarios}
            selected = st.selectbox("Scenario", list(options), format_func=options.get)
            chosen = manager.get_scenario(selected)
            if chosen is not None and chosen.notes:
                st.caption(chosen.notes)
            col1, col2 = st.columns(2)
            with col1:
                if st.button("Load") and chosen is not None:
                    st.session_state.params = chosen.parameters
                    st.rerun()
            with col2:
                if st.button("Delete"):
                    manager.delete_scenario(selected)
                    st.rerun()
            st.download_button("Export All", data=manager.export_scenarios(),
                               file_name="scenarios.json", mime="application/json")

    uploaded = st.sidebar.file_uploader("Import scenarios", type="json")
    if uploaded is not None and st.sidebar.button("Import"):
        try:
            count = manager.import_scenarios(uploaded.getvalue().decode('utf-8'))
            st.sidebar.success(f"Imported {count} scenario(s)")
        except ScenarioImportError as e:
            logger.warning("Scenario import failed: %s", e)
            st.sidebar.error(str(e))

    if st.sidebar.button("Clear saved form data"):
        manager.clear_form_snapshot()
        st.session_state.params = default_parameters()
        st.rerun()


# -----------------------------------------------
# Results
# -----------------------------------------------
def show_results(result, params):
    profile = result.profile

    st.subheader("Net Position at End of Plan")
    cols = st.columns(len(result.final_net_positions))
    for col, (label, value) in zip(cols, result.final_net_positions.items()):
        with col:
            st.metric(label, f"${value:,.0f}")
    st.info(f"Highest net position: **{result.best_scenario}**")

    for kind, age in result.payoff_ages.items():
        if age is not None:
            st.caption(f"{kind.label}: mortgage paid off at age {age}")

    charts = [
        ("Total Costs (Housing + Living)", result.total_costs),
        ("Cumulative Asset Values (Investments + Home Equity)", result.cumulative_assets),
        ("Net Positions (Assets - Total Costs)", result.net_positions),
    ]
    figures = []
    for title, table in charts:
        fig = comparison_chart(table, title, retirement_age=profile.retirement_age)
        st.plotly_chart(fig, use_container_width=True)
        figures.append({'figure': fig, 'title': title})

    tabs = st.tabs(["Total Costs", "Monthly Costs", "Monthly Investment Use",
                    "Investment Values", "Cumulative Assets", "Net Positions"])
    tables = [result.total_costs, result.monthly_costs, result.monthly_investment_use,
              result.investment_values, result.cumulative_assets, result.net_positions]
    for tab, table in zip(tabs, tables):
        with tab:
            st.dataframe(style_money(table), hide_index=True)

    tax_analysis = None
    if params.get('tax') is not None:
        inputs = build_inputs(**params)
        tax_analysis = show_tax_detail(result, inputs.investments, inputs.tax)

    if result.healthcare:
        st.subheader("Projected Healthcare Costs")
        healthcare_df = pd.DataFrame({
            "Age": [r.age for r in result.healthcare],
            "Monthly Premiums": [r.monthly_premium for r in result.healthcare],
            "Out of Pocket": [r.out_of_pocket for r in result.healthcare],
            "Annual Cost": [r.period_value for r in result.healthcare],
        })
        fig_healthcare = px.line(healthcare_df, x="Age", y="Annual Cost", title="Projected Annual Healthcare Costs")
        fig_healthcare.add_vline(x=65, line_dash="dash", line_color="gray", annotation_text="Medicare")
        st.plotly_chart(fig_healthcare, use_container_width=True)
        st.metric("Lifetime Healthcare Cost", f"${total_cost(result.healthcare):,.0f}")
        figures.append({'figure': fig_healthcare, 'title': "Projected Healthcare Costs"})

    report_html = generate_html_report(result, figures=figures, tax_analysis=tax_analysis)
    col1, col2 = st.columns(2)
    with col1:
        st.download_button("Download CSV", data=export_csv(result),
                           file_name="retirement_calculator_results.csv", mime="text/csv")
    with col2:
        st.download_button("Download Report", data=report_html, file_name="housing_report.html",
                           mime="text/html")


def show_tax_detail(result, investment_terms, tax_config):
    """
    Tax for the first retirement year of the renting scenario.
    """
    st.subheader(f"Estimated Tax at Age {result.profile.retirement_age}")
    breakdown = retirement_tax_breakdown(result, investment_terms, tax_config)
    if investment_terms.account_type is AccountType.NON_TAXABLE:
        st.caption("Withdrawals from a tax-free account are not taxed; only other income is shown.")
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Gross Income", f"${breakdown.gross_income:,.0f}")
    with col2:
        st.metric("Total Tax", f"${breakdown.total_tax:,.0f}")
    with col3:
        st.metric("Effective Rate", f"{breakdown.effective_rate:.1%}")

    bracket_df, _ = tax_bracket_breakdown(breakdown.taxable_income, tax_config.filing_status)
    st.dataframe(bracket_df.style.format({
        'Income in Bracket': '${:,.2f}',
        'Tax in Bracket': '${:,.2f}'
    }), hide_index=True)
    return breakdown


# -----------------------------------------------
# STREAMLIT APP
# -----------------------------------------------
def main():
    configure_logging()
    st.set_page_config(page_title="Rent vs. Buy Retirement Projector", layout="wide")
    st.title("Rent vs. Buy Retirement Projector")
    st.subheader("Renting vs. a 15-year vs. a 30-year mortgage, through retirement")

    manager = ScenarioManager(JsonFileStore(store_path()))
    if 'params' not in st.session_state:
        st.session_state.params = manager.load_form_snapshot() or default_parameters()

    params = sidebar_inputs(st.session_state.params)
    sidebar_scenarios(manager, params)

    if st.button("Run Projection"):
        inputs = build_inputs(**params)
        is_valid, error_message = validate_profile(inputs.profile)
        if not is_valid:
            logger.debug("Rejected inputs: %s", error_message)
            st.error(error_message)
            st.stop()

        result = run_projection(inputs)
        manager.save_form_snapshot(params)
        st.session_state.params = params
        show_results(result, params)


if __name__ == "__main__":
    main()
