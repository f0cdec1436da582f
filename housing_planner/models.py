"""
models.py

Contains the parameter records and per-year output records shared by every model:
- Profile (ages, inflation, retirement income, spending)
- ScenarioKind / AccountType / FilingStatus tags
- ApartmentTerms, HouseTerms, InvestmentTerms, TaxConfig, HealthcareConfig
- YearRecord and its housing / healthcare variants, InvestmentYear
- ProjectionInputs (the validated bundle handed to the projection)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

MEDICARE_ELIGIBILITY_AGE = 65


class ScenarioKind(Enum):
    RENT = "rent"
    MORTGAGE_15 = "mortgage_15"
    MORTGAGE_30 = "mortgage_30"

    @property
    def label(self) -> str:
        return SCENARIO_LABELS[self]

    @property
    def term_years(self) -> int:
        """Mortgage term for the buying scenarios, 0 for renting."""
        return {ScenarioKind.RENT: 0, ScenarioKind.MORTGAGE_15: 15, ScenarioKind.MORTGAGE_30: 30}[self]


SCENARIO_LABELS = {
    ScenarioKind.RENT: "Rent",
    ScenarioKind.MORTGAGE_15: "15 Year Mortgage",
    ScenarioKind.MORTGAGE_30: "30 Year Mortgage",
}


class AccountType(Enum):
    TAXABLE = "taxable"          # traditional IRA / brokerage, withdrawals taxed
    NON_TAXABLE = "non_taxable"  # Roth, withdrawals tax-free


class FilingStatus(Enum):
    SINGLE = "single"
    JOINT = "joint"


# -----------------------------------------------
# Inputs
# -----------------------------------------------
@dataclass(frozen=True)
class Profile:
    start_age: int
    retirement_age: int
    life_expectancy: int
    inflation_rate: float  # Annual, decimal
    social_security_monthly: float = 0.0
    other_income_monthly: float = 0.0
    pre_retirement_monthly_spend: float = 0.0
    post_retirement_monthly_spend: float = 0.0

    @property
    def years(self) -> int:
        return self.life_expectancy - self.start_age

    @property
    def ages(self) -> range:
        return range(self.start_age, self.life_expectancy)

    @property
    def years_to_retirement(self) -> int:
        return self.retirement_age - self.start_age

    @property
    def annual_retirement_income(self) -> float:
        return (self.social_security_monthly + self.other_income_monthly) * 12


def validate_profile(profile: Profile) -> Tuple[bool, str]:
    """
    Checks the age ordering before any model runs.
    Returns (True, "") when valid, otherwise (False, message) listing every problem.
    """
    errors = []
    if profile.retirement_age <= profile.start_age:
        errors.append("Retirement age must be greater than current age.")
    if profile.life_expectancy <= profile.retirement_age:
        errors.append("Life expectancy must be greater than retirement age.")
    if errors:
        return False, "\n".join(errors)
    return True, ""


@dataclass(frozen=True)
class ApartmentTerms:
    monthly_rent: float
    rent_increase_rate: float  # Annual
    monthly_insurance: float = 0.0
    monthly_hoa: float = 0.0


@dataclass(frozen=True)
class HouseTerms:
    principal: float
    down_payment: float
    annual_rate: float
    term_years: int
    property_tax: float  # Annual
    appreciation_rate: float  # Annual
    one_time_repairs: float = 0.0
    annual_maintenance: float = 0.0
    monthly_insurance: float = 0.0
    monthly_hoa: float = 0.0

    def __post_init__(self):
        if self.term_years < 0:
            raise ValueError(f"Mortgage term must be non-negative, got {self.term_years}")

    @property
    def home_value(self) -> float:
        return self.principal + self.down_payment


HousingTerms = Union[ApartmentTerms, HouseTerms]


@dataclass(frozen=True)
class InvestmentTerms:
    starting_balance: float
    annual_return_rate: float
    monthly_contribution: float = 0.0
    account_type: AccountType = AccountType.NON_TAXABLE
    tax_rate: float = 0.0  # Flat withdrawal tax for TAXABLE accounts without a TaxConfig
    include_down_payment: bool = False


@dataclass(frozen=True)
class TaxConfig:
    filing_status: FilingStatus = FilingStatus.SINGLE
    state_rate: float = 0.0
    itemize: bool = False
    other_deductions: float = 0.0

    def __post_init__(self):
        if self.state_rate < 0:
            raise ValueError(f"State tax rate must be >= 0, got {self.state_rate}")


@dataclass(frozen=True)
class PreMedicareCoverage:
    premium: float = 800.0  # Monthly
    deductible: float = 5000.0  # Annual
    out_of_pocket: float = 3000.0  # Annual


@dataclass(frozen=True)
class MedicareCoverage:
    part_b: float = 174.70  # Monthly, 2024 standard premium
    part_d: float = 55.0
    medigap: float = 200.0
    out_of_pocket: float = 2000.0  # Annual

    @property
    def monthly_premium(self) -> float:
        return self.part_b + self.part_d + self.medigap


@dataclass(frozen=True)
class LongTermCare:
    premium: float = 250.0  # Monthly
    start_age: int = 60


@dataclass(frozen=True)
class HealthcareConfig:
    pre_medicare: PreMedicareCoverage = field(default_factory=PreMedicareCoverage)
    medicare: MedicareCoverage = field(default_factory=MedicareCoverage)
    long_term_care: Optional[LongTermCare] = None


@dataclass(frozen=True)
class ProjectionInputs:
    """Everything one projection run needs, already validated at the input boundary."""
    profile: Profile
    rent: ApartmentTerms
    mortgage: HouseTerms  # term_years is overridden per mortgage scenario
    investments: InvestmentTerms
    tax: Optional[TaxConfig] = None
    healthcare: Optional[HealthcareConfig] = None


# -----------------------------------------------
# Outputs
# -----------------------------------------------
@dataclass(frozen=True)
class YearRecord:
    age: int
    period_value: float
    cumulative_value: float
    equity: Optional[float] = None


@dataclass(frozen=True)
class HousingYear(YearRecord):
    mortgage_interest: float = 0.0
    principal_paid: float = 0.0
    remaining_principal: float = 0.0
    property_tax: float = 0.0


@dataclass(frozen=True)
class HealthcareYear(YearRecord):
    monthly_premium: float = 0.0
    out_of_pocket: float = 0.0


@dataclass(frozen=True)
class InvestmentYear:
    age: int
    balance: float
    contribution: float = 0.0
    shortfall: float = 0.0
    withdrawal: float = 0.0
    tax: float = 0.0


def period_values(series: List[YearRecord]) -> List[float]:
    return [record.period_value for record in series]


def cumulative_values(series: List[YearRecord]) -> List[float]:
    return [record.cumulative_value for record in series]
