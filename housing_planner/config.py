"""
config.py

Default inputs for the housing strategy projection, and logging setup.

Tweak these values to change what the app starts with. Rates are decimals,
money is in today's dollars, "monthly" amounts are per month.
"""

import logging
import os

from models import (
    AccountType,
    ApartmentTerms,
    FilingStatus,
    HealthcareConfig,
    HouseTerms,
    InvestmentTerms,
    LongTermCare,
    MedicareCoverage,
    PreMedicareCoverage,
    Profile,
    ProjectionInputs,
    TaxConfig,
)

LOG_LEVEL_ENV = "HOUSING_PLANNER_LOG_LEVEL"
STORE_PATH_ENV = "HOUSING_PLANNER_STORE"
DEFAULT_STORE_PATH = "~/.housing_planner.json"

# =============================================================================
# YOUR SITUATION
# =============================================================================
DEFAULT_PROFILE = {
    'start_age': 40,
    'retirement_age': 65,
    'life_expectancy': 90,
    'inflation_rate': 0.03,
    'social_security_monthly': 2000,
    'other_income_monthly': 0,
    'pre_retirement_monthly_spend': 4000,   # Excluding housing
    'post_retirement_monthly_spend': 5000,
}

DEFAULT_RENT = {
    'monthly_rent': 1800,
    'rent_increase_rate': 0.03,
    'monthly_insurance': 20,                # Renter's insurance
}

DEFAULT_MORTGAGE = {
    'principal': 320_000,
    'down_payment': 80_000,
    'annual_rate': 0.06,
    'property_tax': 4000,                   # Annual
    'appreciation_rate': 0.03,
    'one_time_repairs': 10_000,             # Paid in the purchase year
    'annual_maintenance': 3000,
    'monthly_insurance': 150,
}

DEFAULT_INVESTMENTS = {
    'starting_balance': 50_000,
    'annual_return_rate': 0.07,
    'monthly_contribution': 500,
    'account_type': 'non_taxable',
    'tax_rate': 0.15,                       # Flat withdrawal tax for taxable accounts
    'include_down_payment': False,          # Renter invests the would-be down payment
}

DEFAULT_TAX = {
    'filing_status': 'single',
    'state_rate': 0.05,
    'itemize': False,
    'other_deductions': 0,
}

DEFAULT_HEALTHCARE = {
    'pre_medicare_premium': 800,
    'pre_medicare_deductible': 5000,
    'pre_medicare_out_of_pocket': 3000,
    'medicare_part_b': 174.70,
    'medicare_part_d': 55,
    'medigap': 200,
    'medicare_out_of_pocket': 2000,
    'include_long_term_care': False,
    'long_term_care_premium': 250,
    'long_term_care_start_age': 60,
}


def configure_logging(level=None):
    """
    Basic console logging. Level comes from the argument, then the
    HOUSING_PLANNER_LOG_LEVEL environment variable, then WARNING.
    """
    level = level or os.environ.get(LOG_LEVEL_ENV, "WARNING")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def store_path() -> str:
    return os.path.expanduser(os.environ.get(STORE_PATH_ENV, DEFAULT_STORE_PATH))


def build_inputs(profile=None, rent=None, mortgage=None, investments=None,
                 tax=None, healthcare=None) -> ProjectionInputs:
    """
    Builds ProjectionInputs from plain dicts shaped like the DEFAULT_* tables
    (a saved scenario's parameters use the same shape). Missing keys fall back to
    the defaults; tax and healthcare stay off unless a dict is given.
    """
    p = {**DEFAULT_PROFILE, **(profile or {})}
    r = {**DEFAULT_RENT, **(rent or {})}
    m = {'term_years': 30, **DEFAULT_MORTGAGE, **(mortgage or {})}
    inv = {**DEFAULT_INVESTMENTS, **(investments or {})}

    tax_config = None
    if tax is not None:
        t = {**DEFAULT_TAX, **tax}
        tax_config = TaxConfig(
            filing_status=FilingStatus(t['filing_status']),
            state_rate=t['state_rate'],
            itemize=t['itemize'],
            other_deductions=t['other_deductions']
        )

    healthcare_config = None
    if healthcare is not None:
        h = {**DEFAULT_HEALTHCARE, **healthcare}
        healthcare_config = HealthcareConfig(
            pre_medicare=PreMedicareCoverage(
                premium=h['pre_medicare_premium'],
                deductible=h['pre_medicare_deductible'],
                out_of_pocket=h['pre_medicare_out_of_pocket']
            ),
            medicare=MedicareCoverage(
                part_b=h['medicare_part_b'],
                part_d=h['medicare_part_d'],
                medigap=h['medigap'],
                out_of_pocket=h['medicare_out_of_pocket']
            ),
            long_term_care=LongTermCare(
                premium=h['long_term_care_premium'],
                start_age=h['long_term_care_start_age']
            ) if h['include_long_term_care'] else None
        )

    return ProjectionInputs(
        profile=Profile(**p),
        rent=ApartmentTerms(**r),
        mortgage=HouseTerms(**m),
        investments=InvestmentTerms(
            starting_balance=inv['starting_balance'],
            annual_return_rate=inv['annual_return_rate'],
            monthly_contribution=inv['monthly_contribution'],
            account_type=AccountType(inv['account_type']),
            tax_rate=inv['tax_rate'],
            include_down_payment=inv['include_down_payment']
        ),
        tax=tax_config,
        healthcare=healthcare_config
    )
