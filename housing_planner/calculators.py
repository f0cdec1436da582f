"""
calculators.py

Combines the finished per-track series into the comparison tables:
- total_costs (housing + living, cumulative)
- cumulative_assets (investments + home equity)
- net_positions (assets - total costs)
- investment_values, monthly_costs, monthly_investment_use

Every table is a DataFrame with an 'Age' column followed by one column per
housing scenario. Nothing here mutates its inputs.
"""

from typing import Dict, List

import pandas as pd

from models import HousingYear, InvestmentYear, Profile, ScenarioKind, YearRecord


def _table(ages, columns: Dict[ScenarioKind, List[float]]) -> pd.DataFrame:
    data = {'Age': list(ages)}
    for kind, values in columns.items():
        data[kind.label] = values
    return pd.DataFrame(data)


def total_costs(housing: Dict[ScenarioKind, List[HousingYear]], living: List[YearRecord]) -> pd.DataFrame:
    """
    Cumulative housing costs plus cumulative living costs, per scenario.
    """
    ages = [record.age for record in living]
    columns = {
        kind: [h.cumulative_value + l.cumulative_value for h, l in zip(series, living)]
        for kind, series in housing.items()
    }
    return _table(ages, columns)


def investment_values(investments: Dict[ScenarioKind, List[InvestmentYear]]) -> pd.DataFrame:
    first = next(iter(investments.values()))
    ages = [record.age for record in first]
    columns = {kind: [record.balance for record in series] for kind, series in investments.items()}
    return _table(ages, columns)


def cumulative_assets(investments: List[Dict[ScenarioKind, List[InvestmentYear]]],
                      housing: Dict[ScenarioKind, List[HousingYear]]) -> pd.DataFrame:
    """
    Sum of every investment account's balance plus home equity, per scenario.
    """
    first_housing = next(iter(housing.values()))
    ages = [record.age for record in first_housing]
    columns = {}
    for kind, housing_series in housing.items():
        values = []
        for i, housing_year in enumerate(housing_series):
            invested = sum(account[kind][i].balance for account in investments)
            values.append(invested + (housing_year.equity or 0.0))
        columns[kind] = values
    return _table(ages, columns)


def net_positions(assets: pd.DataFrame, costs: pd.DataFrame) -> pd.DataFrame:
    """
    Cumulative assets minus cumulative total costs.
    """
    result = assets.copy()
    scenario_columns = [column for column in assets.columns if column != 'Age']
    result[scenario_columns] = assets[scenario_columns] - costs[scenario_columns]
    return result


def monthly_costs(housing: Dict[ScenarioKind, List[HousingYear]], living: List[YearRecord]) -> pd.DataFrame:
    """
    Average monthly spend (housing + living) in each year.
    """
    ages = [record.age for record in living]
    columns = {
        kind: [(h.period_value + l.period_value) / 12 for h, l in zip(series, living)]
        for kind, series in housing.items()
    }
    return _table(ages, columns)


def monthly_investment_use(profile: Profile, housing: Dict[ScenarioKind, List[HousingYear]],
                           living: List[YearRecord]) -> pd.DataFrame:
    """
    Monthly amount drawn from investments to cover costs, before any tax gross-up.
    Zero while still working.
    """
    monthly_income = profile.social_security_monthly + profile.other_income_monthly
    ages = [record.age for record in living]
    columns = {}
    for kind, series in housing.items():
        values = []
        for h, l in zip(series, living):
            if h.age < profile.retirement_age:
                values.append(0.0)
                continue
            use = h.period_value / 12 + l.period_value / 12 - monthly_income
            values.append(use if use > 0 else 0.0)
        columns[kind] = values
    return _table(ages, columns)
