"""
living.py

Non-housing living expenses, switching from the working-years budget to the
retirement budget at retirement age.
"""

from typing import List

from models import Profile, YearRecord


def calculate_living_expenses(profile: Profile) -> List[YearRecord]:
    """
    Both the pre- and post-retirement budgets inflate every year whichever one is
    active, so the retirement budget starts out already inflated.
    """
    yearly_spending = profile.pre_retirement_monthly_spend * 12
    yearly_retirement_spending = profile.post_retirement_monthly_spend * 12
    total = 0.0
    series = []

    for age in profile.ages:
        current = yearly_spending if age < profile.retirement_age else yearly_retirement_spending
        total += current
        series.append(YearRecord(age=age, period_value=current, cumulative_value=total))

        yearly_spending *= (1 + profile.inflation_rate)
        yearly_retirement_spending *= (1 + profile.inflation_rate)

    return series
