"""
healthcare.py

Annual healthcare costs: private coverage before Medicare, Part B + Part D + Medigap
from 65, and optional long-term care insurance. Every amount is inflated from the
first simulated year.
"""

from typing import List

import numpy as np

from models import MEDICARE_ELIGIBILITY_AGE, HealthcareConfig, HealthcareYear, Profile


def calculate_healthcare_costs(profile: Profile, config: HealthcareConfig) -> List[HealthcareYear]:
    """
    One HealthcareYear per simulated year. The inflation multiplier counts years since
    the start of the projection, not since a policy began.
    """
    multipliers = (1 + profile.inflation_rate) ** np.arange(profile.years)
    ltc = config.long_term_care
    total = 0.0
    series = []

    for age, multiplier in zip(profile.ages, multipliers):
        multiplier = float(multiplier)
        if age < MEDICARE_ELIGIBILITY_AGE:
            monthly_premium = config.pre_medicare.premium * multiplier
            out_of_pocket = (config.pre_medicare.deductible + config.pre_medicare.out_of_pocket) * multiplier
        else:
            monthly_premium = config.medicare.monthly_premium * multiplier
            out_of_pocket = config.medicare.out_of_pocket * multiplier

        if ltc is not None and age >= ltc.start_age:
            monthly_premium += ltc.premium * multiplier

        annual_cost = monthly_premium * 12 + out_of_pocket
        total += annual_cost
        series.append(HealthcareYear(
            age=age,
            period_value=annual_cost,
            cumulative_value=total,
            monthly_premium=monthly_premium,
            out_of_pocket=out_of_pocket
        ))

    return series


def cost_at_age(series: List[HealthcareYear], age: int) -> float:
    """Annual cost at an age, 0 outside the projection."""
    for record in series:
        if record.age == age:
            return record.period_value
    return 0.0


def total_cost(series: List[HealthcareYear]) -> float:
    return series[-1].cumulative_value if series else 0.0
