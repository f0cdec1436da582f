import io

import pytest
import numpy as np
import pandas as pd

import calculators
from config import DEFAULT_MORTGAGE, build_inputs
from export import CSV_BLOCKS, comparison_chart, export_csv, generate_html_report
from models import SCENARIO_LABELS, FilingStatus, ScenarioKind, validate_profile
from projection import build_scenarios, retirement_tax_breakdown, run_projection
from taxes import annual_tax


@pytest.fixture(scope="module")
def result():
    return run_projection(build_inputs())


# =====================================================
# Tests for validate_profile / build_inputs
# =====================================================
@pytest.mark.parametrize("profile,valid", [
    ({'start_age': 40, 'retirement_age': 65, 'life_expectancy': 90}, True),
    ({'start_age': 65, 'retirement_age': 65, 'life_expectancy': 90}, False),
    ({'start_age': 40, 'retirement_age': 65, 'life_expectancy': 65}, False),
])
def test_validate_profile(profile, valid):
    is_valid, message = validate_profile(build_inputs(profile=profile).profile)
    assert is_valid == valid
    assert (message == "") == valid

def test_validate_profile_reports_every_problem():
    inputs = build_inputs(profile={'start_age': 70, 'retirement_age': 65, 'life_expectancy': 60})
    is_valid, message = validate_profile(inputs.profile)
    assert not is_valid
    assert "Retirement age must be greater than current age." in message
    assert "Life expectancy must be greater than retirement age." in message

def test_build_inputs_defaults():
    inputs = build_inputs()
    assert inputs.tax is None
    assert inputs.healthcare is None
    assert inputs.mortgage.principal == DEFAULT_MORTGAGE['principal']

def test_build_inputs_optional_sections():
    inputs = build_inputs(tax={'filing_status': 'joint'}, healthcare={'include_long_term_care': True})
    assert inputs.tax.filing_status is FilingStatus.JOINT
    assert inputs.healthcare.long_term_care.start_age == 60
    assert build_inputs(healthcare={}).healthcare.long_term_care is None

def test_build_scenarios_sets_terms():
    scenarios = build_scenarios(build_inputs(mortgage={'term_years': 20}))
    assert scenarios[ScenarioKind.MORTGAGE_15].term_years == 15
    assert scenarios[ScenarioKind.MORTGAGE_30].term_years == 30
    assert scenarios[ScenarioKind.RENT] == build_inputs().rent


# =====================================================
# Tests for run_projection (end to end)
# =====================================================
def test_projection_shapes(result):
    assert set(result.housing) == set(ScenarioKind)
    for table in [result.total_costs, result.investment_values, result.cumulative_assets,
                  result.net_positions, result.monthly_costs, result.monthly_investment_use]:
        assert list(table.columns) == ['Age', 'Rent', '15 Year Mortgage', '30 Year Mortgage']
        assert len(table) == 50
        assert table['Age'].iloc[0] == 40
        assert table['Age'].iloc[-1] == 89

def test_projection_payoff_ages(result):
    assert result.payoff_ages[ScenarioKind.RENT] is None
    assert result.payoff_ages[ScenarioKind.MORTGAGE_15] == 54
    assert result.payoff_ages[ScenarioKind.MORTGAGE_30] == 69
    fifteen = result.housing[ScenarioKind.MORTGAGE_15]
    assert fifteen[15].age == 55
    assert np.isclose(fifteen[15].remaining_principal, 0.0, atol=1e-6)
    assert fifteen[15].period_value < fifteen[14].period_value
    assert all(record.equity == 0.0 for record in result.housing[ScenarioKind.RENT])

def test_projection_balances_identical_while_working(result):
    values = result.investment_values
    working = values[values['Age'] < 65]
    pd.testing.assert_series_equal(working['Rent'], working['15 Year Mortgage'], check_names=False)
    pd.testing.assert_series_equal(working['Rent'], working['30 Year Mortgage'], check_names=False)

def test_projection_best_scenario(result):
    finals = result.final_net_positions
    assert set(finals) == set(SCENARIO_LABELS.values())
    assert finals[result.best_scenario] == max(finals.values())

def test_projection_with_tax_and_healthcare():
    inputs = build_inputs(investments={'account_type': 'taxable'}, tax={}, healthcare={})
    taxed = run_projection(inputs)
    plain = run_projection(build_inputs(investments={'account_type': 'taxable'}))
    assert taxed.healthcare is not None
    assert len(taxed.healthcare) == 50
    assert (taxed.investment_values['Rent'].iloc[-1] < plain.investment_values['Rent'].iloc[-1])
    retired = taxed.investments[ScenarioKind.RENT][25]
    assert retired.withdrawal > retired.shortfall > 0
    assert retired.tax == pytest.approx(retired.withdrawal - retired.shortfall, abs=0.01)

def test_retirement_tax_breakdown_taxable_account():
    inputs = build_inputs(investments={'account_type': 'taxable'}, tax={'itemize': True})
    taxed = run_projection(inputs)
    breakdown = retirement_tax_breakdown(taxed, inputs.investments, inputs.tax, ScenarioKind.MORTGAGE_30)
    year = taxed.investments[ScenarioKind.MORTGAGE_30][25]
    housing_year = taxed.housing[ScenarioKind.MORTGAGE_30][25]
    assert breakdown == annual_tax(24000.0, 0.0, year.withdrawal, housing_year.mortgage_interest,
                                   housing_year.property_tax, inputs.tax)
    assert breakdown.gross_income > year.withdrawal > 0

def test_retirement_tax_breakdown_tax_free_account():
    inputs = build_inputs(tax={})
    untaxed = run_projection(inputs)
    assert untaxed.investments[ScenarioKind.RENT][25].withdrawal > 0
    breakdown = retirement_tax_breakdown(untaxed, inputs.investments, inputs.tax)
    # Social Security alone stays under the combined-income threshold
    assert breakdown.gross_income == 0.0
    assert breakdown.total_tax == 0.0


# =====================================================
# Tests for calculators
# =====================================================
def test_cumulative_costs_non_decreasing(result):
    for label in SCENARIO_LABELS.values():
        assert result.total_costs[label].is_monotonic_increasing

def test_net_positions_are_assets_minus_costs(result):
    for label in SCENARIO_LABELS.values():
        expected = result.cumulative_assets[label] - result.total_costs[label]
        assert np.allclose(result.net_positions[label], expected)

def test_rent_assets_are_investments_only(result):
    assert np.allclose(result.cumulative_assets['Rent'], result.investment_values['Rent'])
    owned = result.cumulative_assets['30 Year Mortgage'] - result.investment_values['30 Year Mortgage']
    assert (owned > 0).all()

def test_cumulative_assets_sum_accounts(result):
    doubled = calculators.cumulative_assets([result.investments, result.investments], result.housing)
    single = result.cumulative_assets
    assert np.allclose(doubled['Rent'], 2 * single['Rent'])

def test_monthly_investment_use_zero_while_working(result):
    use = result.monthly_investment_use
    assert (use[use['Age'] < 65]['Rent'] == 0).all()
    assert (use[use['Age'] >= 65]['Rent'] >= 0).all()

def test_net_positions_does_not_mutate_inputs(result):
    assets = result.cumulative_assets.copy()
    calculators.net_positions(result.cumulative_assets, result.total_costs)
    pd.testing.assert_frame_equal(assets, result.cumulative_assets)


# =====================================================
# Tests for export
# =====================================================
def test_export_csv_layout(result):
    csv = export_csv(result)
    assert csv.startswith("Retirement Calculator Results\n\n")
    for title in ["Total Costs (Housing + Living)", "Investment Values",
                  "Cumulative Asset Values (Investments + Home Equity)", "Net Positions (Assets - Total Costs)"]:
        assert f"\n{title}\nAge,Rent,15 Year Mortgage,30 Year Mortgage\n" in csv

def test_export_csv_round_trip(result):
    blocks = export_csv(result).split("\n\n")[1:]
    assert len(blocks) == len(CSV_BLOCKS)
    for block, (title, attribute) in zip(blocks, CSV_BLOCKS):
        heading, body = block.split("\n", 1)
        assert heading == title
        table = getattr(result, attribute)
        parsed = pd.read_csv(io.StringIO(body), dtype=str)
        assert list(parsed.columns) == list(table.columns)
        assert list(parsed['Age']) == [str(age) for age in table['Age']]
        for label in SCENARIO_LABELS.values():
            assert list(parsed[label]) == [f"{value:.2f}" for value in table[label]]

def test_comparison_chart(result):
    fig = comparison_chart(result.net_positions, "Net Positions", retirement_age=65)
    assert len(fig.data) == 3
    assert {trace.name for trace in fig.data} == set(SCENARIO_LABELS.values())

def test_generate_html_report(result):
    fig = comparison_chart(result.total_costs, "Total Costs")
    html = generate_html_report(result, figures=[{'figure': fig, 'title': "Total Costs"}])
    assert "Housing Strategy Retirement Report" in html
    assert "Net Positions (Assets - Total Costs)" in html
    assert result.best_scenario in html
    assert "15 Year Mortgage paid off at age 54" in html
