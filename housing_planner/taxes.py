"""
taxes.py

Simplified federal + state income tax for retirement income.
Uses 2024 federal brackets and standard deductions (not inflation-indexed),
a flat state rate, and the combined-income test for Social Security.
"""

from dataclasses import dataclass
from functools import lru_cache

import pandas as pd

from models import FilingStatus, TaxConfig

# (upper bound, marginal rate), sorted; the last band is open-ended
FEDERAL_TAX_BRACKETS = {
    FilingStatus.SINGLE: [
        (11600, 0.10),
        (47150, 0.12),
        (100525, 0.22),
        (191950, 0.24),
        (243725, 0.32),
        (609350, 0.35),
        (float('inf'), 0.37)
    ],
    FilingStatus.JOINT: [
        (23200, 0.10),
        (94300, 0.12),
        (201050, 0.22),
        (383900, 0.24),
        (487450, 0.32),
        (731200, 0.35),
        (float('inf'), 0.37)
    ],
}

STANDARD_DEDUCTION = {
    FilingStatus.SINGLE: 14600,
    FilingStatus.JOINT: 29200,
}

SALT_CAP = 10000

# Combined-income thresholds (lower, upper) for taxing Social Security
SS_THRESHOLDS = {
    FilingStatus.SINGLE: (25000, 34000),
    FilingStatus.JOINT: (32000, 44000),
}


@dataclass(frozen=True)
class TaxBreakdown:
    gross_income: float
    taxable_social_security: float
    deductions: float
    taxable_income: float
    federal_tax: float
    state_tax: float
    total_tax: float

    @property
    def effective_rate(self) -> float:
        """Total tax as a share of gross income (0 when there is no income)."""
        if self.gross_income <= 0:
            return 0.0
        return self.total_tax / self.gross_income


def federal_tax(taxable_income: float, filing_status: FilingStatus) -> float:
    """
    Progressive federal tax: each bracket only taxes the income inside its band.
    """
    if taxable_income <= 0:
        return 0.0

    tax = 0.0
    previous_max = 0.0
    for upper_bound, rate in FEDERAL_TAX_BRACKETS[filing_status]:
        income_in_bracket = min(taxable_income, upper_bound) - previous_max
        tax += income_in_bracket * rate
        if taxable_income <= upper_bound:
            break
        previous_max = upper_bound

    return tax


def state_tax(taxable_income: float, rate: float) -> float:
    if taxable_income <= 0:
        return 0.0
    return taxable_income * rate


def deductions(itemize: bool, mortgage_interest: float, property_tax: float,
               other_deductions: float, filing_status: FilingStatus) -> float:
    """
    Standard deduction, or the larger of standard and itemized when itemizing.
    Property tax counts only up to the SALT cap.
    """
    standard = STANDARD_DEDUCTION[filing_status]
    if not itemize:
        return standard

    itemized = mortgage_interest + min(property_tax, SALT_CAP) + other_deductions
    return max(standard, itemized)


def taxable_social_security(ss_income: float, other_income: float, filing_status: FilingStatus) -> float:
    """
    Portion of Social Security benefits subject to income tax (0%, up to 50%, up to 85%).
    """
    combined_income = other_income + ss_income * 0.5
    lower, upper = SS_THRESHOLDS[filing_status]

    if combined_income < lower:
        return 0.0
    if combined_income < upper:
        return min(ss_income * 0.5, (combined_income - lower) * 0.5)
    return min(ss_income * 0.85, (upper - lower) * 0.5 + (combined_income - upper) * 0.85)


@lru_cache(maxsize=4096)
def annual_tax(ss_income: float, other_income: float, investment_withdrawals: float,
               mortgage_interest: float, property_tax: float, config: TaxConfig) -> TaxBreakdown:
    """
    Total tax for one year of retirement income. Investment withdrawals are treated
    as ordinary income and count toward the Social Security combined-income test.
    """
    status = config.filing_status
    taxable_ss = taxable_social_security(ss_income, other_income + investment_withdrawals, status)
    gross_income = taxable_ss + other_income + investment_withdrawals
    total_deductions = deductions(config.itemize, mortgage_interest, property_tax,
                                  config.other_deductions, status)
    taxable_income = max(0.0, gross_income - total_deductions)

    fed = federal_tax(taxable_income, status)
    state = state_tax(taxable_income, config.state_rate)

    return TaxBreakdown(
        gross_income=gross_income,
        taxable_social_security=taxable_ss,
        deductions=total_deductions,
        taxable_income=taxable_income,
        federal_tax=fed,
        state_tax=state,
        total_tax=fed + state
    )


def withdrawal_tax_rate(withdrawal: float, ss_income: float, other_income: float,
                        mortgage_interest: float, property_tax: float, config: TaxConfig) -> float:
    """
    Flat-equivalent rate on a withdrawal: the extra tax the withdrawal causes,
    divided by the withdrawal.
    """
    if withdrawal <= 0:
        return 0.0
    with_withdrawal = annual_tax(ss_income, other_income, withdrawal, mortgage_interest, property_tax, config)
    without_withdrawal = annual_tax(ss_income, other_income, 0.0, mortgage_interest, property_tax, config)
    return (with_withdrawal.total_tax - without_withdrawal.total_tax) / withdrawal


# -----------------------------------------------
# Tax Bracket Breakdown (detail view)
# -----------------------------------------------
def tax_bracket_breakdown(taxable_income: float, filing_status: FilingStatus):
    """
    Returns (DataFrame of income and tax per bracket, total federal tax).
    """
    total_tax = 0.0
    previous_max = 0.0
    breakdown = []

    for upper_bound, rate in FEDERAL_TAX_BRACKETS[filing_status]:
        if taxable_income <= previous_max:
            break
        taxable_in_bracket = min(taxable_income, upper_bound) - previous_max
        tax_in_bracket = taxable_in_bracket * rate
        breakdown.append({
            'Bracket': f"{rate*100:.1f}%",
            'Income in Bracket': taxable_in_bracket,
            'Tax in Bracket': tax_in_bracket
        })
        total_tax += tax_in_bracket
        previous_max = upper_bound

    return pd.DataFrame(breakdown, columns=['Bracket', 'Income in Bracket', 'Tax in Bracket']), total_tax
