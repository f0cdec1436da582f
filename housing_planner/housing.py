"""
housing.py

Year-by-year housing cost and equity series for the two housing types:
- Apartment: rent + renter's insurance (+ HOA), no equity
- House: mortgage amortization, property tax, insurance, HOA, repairs/maintenance,
  equity as appreciating market value

Both follow the same contract: calculate_housing(terms, profile) -> List[HousingYear].
"""

import logging
from typing import List, Optional, Tuple

import pandas as pd

from models import ApartmentTerms, HouseTerms, HousingTerms, HousingYear, Profile

logger = logging.getLogger(__name__)


# -----------------------------------------------
# Mortgage Payment Formula
# -----------------------------------------------
def standard_mortgage_payment(principal, annual_interest_rate, mortgage_years):
    """
    Computes the monthly payment for a standard amortizing mortgage.
    Returns 0 if principal or mortgage_years is not positive, or the rate is negative.
    In a zero-interest scenario, returns principal divided by the number of months.
    """
    if principal <= 0 or mortgage_years <= 0 or annual_interest_rate < 0:
        return 0.0

    monthly_rate = annual_interest_rate / 12.0
    n_months = mortgage_years * 12

    if monthly_rate == 0:
        return principal / n_months

    payment = principal * (monthly_rate * (1 + monthly_rate) ** n_months) / ((1 + monthly_rate) ** n_months - 1)
    return payment


def amortize_year(remaining_principal: float, monthly_payment: float, monthly_rate: float) -> Tuple[float, float, float]:
    """
    Runs 12 monthly payments against the balance.
    Returns (new_remaining_principal, interest_paid, principal_paid).
    """
    interest_paid = 0.0
    principal_paid = 0.0

    for _ in range(12):
        interest_for_month = remaining_principal * monthly_rate
        principal_for_month = monthly_payment - interest_for_month
        interest_paid += interest_for_month
        principal_paid += principal_for_month
        remaining_principal -= principal_for_month
        # Rounding can push the last payment slightly past zero
        if remaining_principal < 0:
            remaining_principal = 0.0

    return remaining_principal, interest_paid, principal_paid


def amortization_schedule(principal, annual_interest_rate, mortgage_years) -> pd.DataFrame:
    """
    Full month-by-month schedule for a loan, one row per payment.
    """
    payment = standard_mortgage_payment(principal, annual_interest_rate, mortgage_years)
    monthly_rate = annual_interest_rate / 12.0
    remaining = principal
    rows = []

    for month in range(1, int(mortgage_years * 12) + 1):
        interest = remaining * monthly_rate
        principal_portion = payment - interest
        remaining -= principal_portion
        if remaining < 0:
            remaining = 0.0
        rows.append({
            'Month': month,
            'Payment': payment,
            'Interest': interest,
            'Principal': principal_portion,
            'Remaining Balance': remaining
        })

    return pd.DataFrame(rows, columns=['Month', 'Payment', 'Interest', 'Principal', 'Remaining Balance'])


# -----------------------------------------------
# Apartment (renting)
# -----------------------------------------------
def calculate_apartment(terms: ApartmentTerms, profile: Profile) -> List[HousingYear]:
    """
    Rent compounds by its own increase rate; insurance and HOA follow general inflation.
    A rental never accrues equity.
    """
    current_rent = terms.monthly_rent
    insurance = terms.monthly_insurance
    hoa = terms.monthly_hoa
    total = 0.0
    series = []

    for age in profile.ages:
        yearly_costs = current_rent * 12 + insurance * 12 + hoa * 12
        total += yearly_costs
        series.append(HousingYear(age=age, period_value=yearly_costs, cumulative_value=total, equity=0.0))

        current_rent *= (1 + terms.rent_increase_rate)
        insurance *= (1 + profile.inflation_rate)
        hoa *= (1 + profile.inflation_rate)

    return series


# -----------------------------------------------
# House (buying with a mortgage)
# -----------------------------------------------
def calculate_house(terms: HouseTerms, profile: Profile) -> List[HousingYear]:
    """
    Yearly ownership costs with a month-by-month amortization of the loan.

    Equity is the market value of the home (purchase price compounded by the
    appreciation rate), not value minus the remaining loan balance.
    """
    monthly_payment = standard_mortgage_payment(terms.principal, terms.annual_rate, terms.term_years)
    monthly_rate = terms.annual_rate / 12.0

    remaining_principal = terms.principal
    home_value = terms.home_value
    insurance = terms.monthly_insurance
    hoa = terms.monthly_hoa
    property_tax = terms.property_tax
    maintenance = terms.annual_maintenance
    total = 0.0
    series = []

    if terms.term_years > profile.years:
        logger.debug("Mortgage term %s exceeds the %s-year horizon; amortization is truncated",
                     terms.term_years, profile.years)

    for year, age in enumerate(profile.ages):
        yearly_costs = insurance * 12 + hoa * 12 + property_tax
        interest_paid = 0.0
        principal_paid = 0.0

        if year < terms.term_years and remaining_principal > 0:
            remaining_principal, interest_paid, principal_paid = amortize_year(
                remaining_principal, monthly_payment, monthly_rate
            )
            yearly_costs += monthly_payment * 12

        # Initial repairs replace maintenance in the purchase year
        if year == 0:
            yearly_costs += terms.one_time_repairs
        else:
            yearly_costs += maintenance

        home_value *= (1 + terms.appreciation_rate)
        total += yearly_costs

        series.append(HousingYear(
            age=age,
            period_value=yearly_costs,
            cumulative_value=total,
            equity=home_value,
            mortgage_interest=interest_paid,
            principal_paid=principal_paid,
            remaining_principal=remaining_principal,
            property_tax=property_tax
        ))

        insurance *= (1 + profile.inflation_rate)
        hoa *= (1 + profile.inflation_rate)
        property_tax *= (1 + profile.inflation_rate)
        maintenance *= (1 + profile.inflation_rate)

    return series


_CALCULATORS = {
    ApartmentTerms: calculate_apartment,
    HouseTerms: calculate_house,
}


def calculate_housing(terms: HousingTerms, profile: Profile) -> List[HousingYear]:
    """Dispatches to the calculator registered for the type of terms."""
    try:
        calculator = _CALCULATORS[type(terms)]
    except KeyError:
        raise TypeError(f"Unsupported housing terms: {type(terms).__name__}") from None
    return calculator(terms, profile)


def payoff_age(series: List[HousingYear]) -> Optional[int]:
    """
    First age at which the mortgage balance reaches zero, or None if it never does
    (or there was never a loan to pay off).
    """
    if not series or all(record.principal_paid == 0 for record in series):
        return None
    for record in series:
        if record.principal_paid > 0 and record.remaining_principal <= 1e-6:
            return record.age
    return None
