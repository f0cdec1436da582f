import pytest
import numpy as np

from housing import (
    amortization_schedule,
    amortize_year,
    calculate_apartment,
    calculate_house,
    calculate_housing,
    payoff_age,
    standard_mortgage_payment,
)
from models import ApartmentTerms, HouseTerms, Profile


@pytest.fixture
def profile():
    return Profile(start_age=40, retirement_age=65, life_expectancy=90, inflation_rate=0.03)


@pytest.fixture
def house():
    return HouseTerms(
        principal=320000,
        down_payment=80000,
        annual_rate=0.06,
        term_years=15,
        property_tax=4000,
        appreciation_rate=0.03,
        one_time_repairs=10000,
        annual_maintenance=3000,
        monthly_insurance=150
    )


# =====================================================
# Tests for standard_mortgage_payment
# =====================================================
def test_standard_mortgage_payment_normal():
    payment = standard_mortgage_payment(100000, 0.05, 30)
    # Expected monthly payment is approximately 536.82 for these parameters.
    assert np.isclose(payment, 536.82, atol=0.01)

@pytest.mark.parametrize("principal,rate,years,expected", [
    (0, 0.05, 30, 0.0),
    (-5000, 0.05, 30, 0.0),
    (100000, 0, 30, 100000/(30*12)),
    (100000, 0.05, 0, 0.0),
    (100000, -0.01, 30, 0.0)
])
def test_standard_mortgage_payment_edge_cases(principal, rate, years, expected):
    payment = standard_mortgage_payment(principal, rate, years)
    assert np.isclose(payment, expected, atol=0.01)


# =====================================================
# Tests for amortization
# =====================================================
def test_amortization_schedule_pays_off_loan():
    schedule = amortization_schedule(300000, 0.06, 30)
    assert len(schedule) == 360
    assert np.isclose(schedule['Principal'].sum(), 300000, atol=0.01)
    assert np.isclose(schedule['Remaining Balance'].iloc[-1], 0.0, atol=1e-6)
    assert (schedule['Remaining Balance'] >= 0).all()
    # Interest share shrinks as the balance falls
    assert schedule['Interest'].iloc[0] > schedule['Interest'].iloc[-1]

def test_amortize_year_splits_payments():
    payment = standard_mortgage_payment(300000, 0.06, 30)
    remaining, interest, principal = amortize_year(300000, payment, 0.005)
    assert np.isclose(interest + principal, payment * 12)
    assert np.isclose(remaining, 300000 - principal)
    assert interest > principal


# =====================================================
# Tests for calculate_apartment
# =====================================================
def test_apartment_rent_compounds_and_has_no_equity(profile):
    terms = ApartmentTerms(monthly_rent=1800, rent_increase_rate=0.04, monthly_insurance=20)
    series = calculate_apartment(terms, profile)

    assert len(series) == profile.years
    assert series[0].age == 40
    assert np.isclose(series[0].period_value, 1800 * 12 + 20 * 12)
    assert np.isclose(series[1].period_value, 1800 * 1.04 * 12 + 20 * 1.03 * 12)
    assert all(record.equity == 0.0 for record in series)
    assert np.isclose(series[-1].cumulative_value, sum(r.period_value for r in series))

def test_apartment_costs_grow_with_inflation(profile):
    series = calculate_apartment(ApartmentTerms(1500, 0.03, 15, 50), profile)
    costs = [r.period_value for r in series]
    assert all(b > a for a, b in zip(costs, costs[1:]))


# =====================================================
# Tests for calculate_house
# =====================================================
def test_house_first_year_costs(house, profile):
    series = calculate_house(house, profile)
    payment = standard_mortgage_payment(320000, 0.06, 15)
    expected = payment * 12 + 150 * 12 + 4000 + 10000
    assert np.isclose(series[0].period_value, expected)
    assert series[0].mortgage_interest > 0
    assert series[0].property_tax == 4000

def test_house_maintenance_and_property_tax_escalate(house, profile):
    series = calculate_house(house, profile)
    assert np.isclose(series[1].property_tax, 4000 * 1.03)
    assert np.isclose(series[2].property_tax, 4000 * 1.03 ** 2)
    # After payoff the yearly cost is insurance, property tax and maintenance only
    year = 20
    expected = 150 * 1.03 ** year * 12 + 4000 * 1.03 ** year + 3000 * 1.03 ** year
    assert np.isclose(series[year].period_value, expected)

def test_house_costs_rise_every_year_with_inflation(house, profile):
    series = calculate_house(house, profile)
    taxes = [r.property_tax for r in series]
    assert all(b > a for a, b in zip(taxes, taxes[1:]))
    # With the mortgage payment fixed, insurance, property tax and maintenance
    # push the yearly cost up every year of the loan and every year after it
    during = [r.period_value for r in series[1:15]]
    after = [r.period_value for r in series[15:]]
    assert all(b > a for a, b in zip(during, during[1:]))
    assert all(b > a for a, b in zip(after, after[1:]))

def test_house_costs_flat_without_inflation(house):
    flat = Profile(start_age=40, retirement_age=65, life_expectancy=90, inflation_rate=0.0)
    series = calculate_house(house, flat)
    assert len({r.property_tax for r in series}) == 1
    assert len({round(r.period_value, 6) for r in series[15:]}) == 1

def test_house_equity_is_appreciated_market_value(house, profile):
    series = calculate_house(house, profile)
    assert np.isclose(series[0].equity, 400000 * 1.03)
    equities = [r.equity for r in series]
    assert all(b > a for a, b in zip(equities, equities[1:]))

def test_house_loan_pays_off_on_schedule(house, profile):
    series = calculate_house(house, profile)
    assert np.isclose(series[14].remaining_principal, 0.0, atol=1e-6)
    assert np.isclose(sum(r.principal_paid for r in series), 320000, atol=0.01)
    assert series[15].mortgage_interest == 0.0
    assert series[15].period_value < series[14].period_value
    assert payoff_age(series) == 54

def test_house_term_longer_than_horizon(house):
    short = Profile(start_age=70, retirement_age=75, life_expectancy=80, inflation_rate=0.02)
    series = calculate_house(HouseTerms(**{**house.__dict__, 'term_years': 30}), short)
    assert len(series) == 10
    assert series[-1].remaining_principal > 0
    assert payoff_age(series) is None

def test_house_without_loan(profile):
    terms = HouseTerms(principal=0, down_payment=400000, annual_rate=0.06, term_years=30,
                       property_tax=4000, appreciation_rate=0.03)
    series = calculate_house(terms, profile)
    assert all(r.mortgage_interest == 0.0 for r in series)
    assert payoff_age(series) is None

def test_negative_term_rejected():
    with pytest.raises(ValueError):
        HouseTerms(principal=1, down_payment=0, annual_rate=0.05, term_years=-1,
                   property_tax=0, appreciation_rate=0)


# =====================================================
# Tests for calculate_housing dispatch
# =====================================================
def test_calculate_housing_dispatches(house, profile):
    assert calculate_housing(house, profile) == calculate_house(house, profile)
    rent = ApartmentTerms(1800, 0.03)
    assert calculate_housing(rent, profile) == calculate_apartment(rent, profile)

def test_calculate_housing_unknown_terms(profile):
    with pytest.raises(TypeError):
        calculate_housing(object(), profile)
