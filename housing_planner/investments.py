"""
investments.py

Grows an investment balance before retirement and draws it down afterwards to
cover whatever housing, living and healthcare costs retirement income does not.

Every housing scenario gets its own running balance seeded from the same starting
amount; no scenario ever reads another scenario's balance.
"""

import logging
from typing import Dict, List, Optional

from models import (
    AccountType,
    HealthcareYear,
    HousingYear,
    InvestmentTerms,
    InvestmentYear,
    Profile,
    ScenarioKind,
    TaxConfig,
    YearRecord,
)
from taxes import withdrawal_tax_rate

logger = logging.getLogger(__name__)

# Keeps the flat-equivalent gross-up finite when tax settings are extreme
MAX_WITHDRAWAL_TAX_RATE = 0.95

# Fixed-point solve for the withdrawal whose after-tax amount is the shortfall
GROSS_UP_TOLERANCE = 1e-6
MAX_GROSS_UP_ITERATIONS = 100


def gross_up_withdrawal(shortfall: float, terms: InvestmentTerms, profile: Profile,
                        housing_year: Optional[HousingYear] = None,
                        tax_config: Optional[TaxConfig] = None):
    """
    Amount to take out of the account so that after tax it covers the shortfall.
    Returns (withdrawal, tax_on_withdrawal).

    - NON_TAXABLE: the shortfall itself.
    - TAXABLE, no tax config: shortfall * (1 + tax_rate).
    - TAXABLE with a tax config: withdrawal = shortfall / (1 - rate), where rate is
      the flat-equivalent rate the tax model puts on that same withdrawal. Solved
      by iterating from withdrawal = shortfall; the tax returned is what the tax
      model charges on the final withdrawal.
    """
    if shortfall <= 0:
        return 0.0, 0.0

    if terms.account_type is AccountType.NON_TAXABLE:
        return shortfall, 0.0

    if tax_config is None:
        withdrawal = shortfall * (1 + terms.tax_rate)
        return withdrawal, withdrawal - shortfall

    mortgage_interest = housing_year.mortgage_interest if housing_year is not None else 0.0
    property_tax = housing_year.property_tax if housing_year is not None else 0.0
    income = (profile.social_security_monthly * 12, profile.other_income_monthly * 12,
              mortgage_interest, property_tax, tax_config)

    withdrawal = shortfall
    for _ in range(MAX_GROSS_UP_ITERATIONS):
        rate = withdrawal_tax_rate(withdrawal, *income)
        if rate > MAX_WITHDRAWAL_TAX_RATE:
            logger.warning("Withdrawal tax rate %.2f capped at %.2f", rate, MAX_WITHDRAWAL_TAX_RATE)
            withdrawal = shortfall / (1 - MAX_WITHDRAWAL_TAX_RATE)
            return withdrawal, withdrawal - shortfall
        next_withdrawal = shortfall / (1 - rate)
        converged = abs(next_withdrawal - withdrawal) < GROSS_UP_TOLERANCE
        withdrawal = next_withdrawal
        if converged:
            break
    else:
        logger.warning("Withdrawal gross-up did not converge for shortfall %.2f", shortfall)

    return withdrawal, withdrawal * withdrawal_tax_rate(withdrawal, *income)


def calculate_scenario_balances(terms: InvestmentTerms, profile: Profile, starting_balance: float,
                                housing: List[HousingYear], living: List[YearRecord],
                                healthcare: Optional[List[HealthcareYear]] = None,
                                tax_config: Optional[TaxConfig] = None) -> List[InvestmentYear]:
    """
    Year-by-year balance for one housing scenario.
    Accumulation: (prev + contributions) * (1 + return).
    Drawdown: (prev - withdrawal) * (1 + return). Balances may go negative.
    """
    annual_contribution = terms.monthly_contribution * 12
    growth = 1 + terms.annual_return_rate
    retirement_income = profile.annual_retirement_income
    balance = starting_balance
    series = []

    for i, age in enumerate(profile.ages):
        if age < profile.retirement_age:
            balance = (balance + annual_contribution) * growth
            series.append(InvestmentYear(age=age, balance=balance, contribution=annual_contribution))
            continue

        healthcare_cost = healthcare[i].period_value if healthcare else 0.0
        shortfall = housing[i].period_value + living[i].period_value + healthcare_cost - retirement_income
        withdrawal, tax = gross_up_withdrawal(shortfall, terms, profile, housing[i], tax_config)
        balance = (balance - withdrawal) * growth
        series.append(InvestmentYear(
            age=age,
            balance=balance,
            shortfall=max(shortfall, 0.0),
            withdrawal=withdrawal,
            tax=tax
        ))

    return series


def calculate_investments(terms: InvestmentTerms, profile: Profile,
                          housing: Dict[ScenarioKind, List[HousingYear]],
                          living: List[YearRecord],
                          healthcare: Optional[List[HealthcareYear]] = None,
                          tax_config: Optional[TaxConfig] = None,
                          down_payment: float = 0.0) -> Dict[ScenarioKind, List[InvestmentYear]]:
    """
    Balance series for every housing scenario, each computed from scratch.
    When terms.include_down_payment is set, the down payment is added to the
    starting balance of every scenario.
    """
    starting_balance = terms.starting_balance
    if terms.include_down_payment:
        starting_balance += down_payment

    results = {}
    for kind, housing_series in housing.items():
        results[kind] = calculate_scenario_balances(
            terms, profile, starting_balance, housing_series, living, healthcare, tax_config
        )
        final = results[kind][-1].balance if results[kind] else starting_balance
        if final < 0:
            logger.info("%s: investments run out before age %s (final balance %.2f)",
                        kind.label, profile.life_expectancy, final)

    return results
