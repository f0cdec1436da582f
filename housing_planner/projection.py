"""
projection.py

Runs every model for the three housing strategies (rent, 15-year and 30-year
mortgage) and assembles the comparison tables.
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional

import pandas as pd

import calculators
from healthcare import calculate_healthcare_costs
from housing import calculate_housing, payoff_age
from investments import calculate_investments
from living import calculate_living_expenses
from models import (
    AccountType,
    HealthcareYear,
    HousingTerms,
    HousingYear,
    InvestmentYear,
    InvestmentTerms,
    Profile,
    ProjectionInputs,
    ScenarioKind,
    TaxConfig,
    YearRecord,
)
from taxes import TaxBreakdown, annual_tax

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectionResult:
    profile: Profile
    housing: Dict[ScenarioKind, List[HousingYear]]
    living: List[YearRecord]
    healthcare: Optional[List[HealthcareYear]]
    investments: Dict[ScenarioKind, List[InvestmentYear]]
    total_costs: pd.DataFrame
    investment_values: pd.DataFrame
    cumulative_assets: pd.DataFrame
    net_positions: pd.DataFrame
    monthly_costs: pd.DataFrame
    monthly_investment_use: pd.DataFrame
    payoff_ages: Dict[ScenarioKind, Optional[int]]

    @property
    def final_net_positions(self) -> Dict[str, float]:
        last = self.net_positions.iloc[-1]
        return {kind.label: float(last[kind.label]) for kind in self.housing}

    @property
    def best_scenario(self) -> str:
        finals = self.final_net_positions
        return max(finals, key=finals.get)


def build_scenarios(inputs: ProjectionInputs) -> Dict[ScenarioKind, HousingTerms]:
    """
    The renting terms plus the shared mortgage terms at a 15- and 30-year term.
    """
    return {
        ScenarioKind.RENT: inputs.rent,
        ScenarioKind.MORTGAGE_15: replace(inputs.mortgage, term_years=ScenarioKind.MORTGAGE_15.term_years),
        ScenarioKind.MORTGAGE_30: replace(inputs.mortgage, term_years=ScenarioKind.MORTGAGE_30.term_years),
    }


def run_projection(inputs: ProjectionInputs) -> ProjectionResult:
    """
    Runs the whole projection. The profile is assumed to have passed validate_profile.
    """
    profile = inputs.profile
    logger.debug("Projecting ages %s-%s (retire at %s)",
                 profile.start_age, profile.life_expectancy, profile.retirement_age)

    housing = {kind: calculate_housing(terms, profile) for kind, terms in build_scenarios(inputs).items()}
    living = calculate_living_expenses(profile)
    healthcare = calculate_healthcare_costs(profile, inputs.healthcare) if inputs.healthcare else None
    logger.debug("Housing, living and healthcare series built (%s years)", profile.years)

    investments = calculate_investments(
        inputs.investments,
        profile,
        housing,
        living,
        healthcare=healthcare,
        tax_config=inputs.tax,
        down_payment=inputs.mortgage.down_payment
    )

    costs = calculators.total_costs(housing, living)
    assets = calculators.cumulative_assets([investments], housing)
    result = ProjectionResult(
        profile=profile,
        housing=housing,
        living=living,
        healthcare=healthcare,
        investments=investments,
        total_costs=costs,
        investment_values=calculators.investment_values(investments),
        cumulative_assets=assets,
        net_positions=calculators.net_positions(assets, costs),
        monthly_costs=calculators.monthly_costs(housing, living),
        monthly_investment_use=calculators.monthly_investment_use(profile, housing, living),
        payoff_ages={kind: payoff_age(series) for kind, series in housing.items()}
    )

    logger.info("Projection complete; best final net position: %s", result.best_scenario)
    return result


def retirement_tax_breakdown(result: ProjectionResult, terms: InvestmentTerms, tax_config: TaxConfig,
                             kind: ScenarioKind = ScenarioKind.RENT) -> TaxBreakdown:
    """
    Tax for the first retirement year of one scenario. Withdrawals from a
    NON_TAXABLE account are not income, so only Social Security and other
    income are taxed.
    """
    profile = result.profile
    index = profile.years_to_retirement
    housing_year = result.housing[kind][index]
    withdrawal = result.investments[kind][index].withdrawal
    if terms.account_type is AccountType.NON_TAXABLE:
        withdrawal = 0.0
    return annual_tax(
        profile.social_security_monthly * 12,
        profile.other_income_monthly * 12,
        withdrawal,
        housing_year.mortgage_interest,
        housing_year.property_tax,
        tax_config
    )
