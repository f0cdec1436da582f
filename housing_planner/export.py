"""
export.py

Turns a ProjectionResult into downloadable output:
- export_csv: plain-text dump, one labeled block per comparison table
- comparison_chart: Plotly line chart of a comparison table
- generate_html_report: standalone HTML report (jinja2)
"""

from datetime import date

import pandas as pd
import plotly.express as px
from plotly import graph_objects as go
from jinja2 import Template

from models import SCENARIO_LABELS

CSV_BLOCKS = [
    ("Total Costs (Housing + Living)", "total_costs"),
    ("Investment Values", "investment_values"),
    ("Cumulative Asset Values (Investments + Home Equity)", "cumulative_assets"),
    ("Net Positions (Assets - Total Costs)", "net_positions"),
]

SCENARIO_COLORS = {
    "Rent": "steelblue",
    "15 Year Mortgage": "maroon",
    "30 Year Mortgage": "green",
}


def table_to_csv(table: pd.DataFrame) -> str:
    """One block: header row then one row per age, money to 2 decimals."""
    frame = table.copy()
    scenario_columns = [column for column in frame.columns if column != 'Age']
    frame[scenario_columns] = frame[scenario_columns].astype(float)
    return frame.to_csv(index=False, float_format="%.2f", lineterminator="\n")


def export_csv(result) -> str:
    csv = "Retirement Calculator Results\n\n"
    blocks = []
    for title, attribute in CSV_BLOCKS:
        blocks.append(f"{title}\n" + table_to_csv(getattr(result, attribute)))
    return csv + "\n".join(blocks)


# -----------------------------------------------
# Charts
# -----------------------------------------------
def comparison_chart(table: pd.DataFrame, title: str, retirement_age=None) -> go.Figure:
    """
    One line per scenario against age. Adds a zero line when the chart crosses zero.
    """
    long_df = table.melt(id_vars='Age', var_name='Scenario', value_name='Value')
    fig = px.line(
        long_df,
        x='Age',
        y='Value',
        color='Scenario',
        title=title,
        color_discrete_map=SCENARIO_COLORS,
        labels={'Value': 'Value ($)'}
    )
    fig.update_yaxes(tickprefix='$', tickformat=',.0f')

    values = long_df['Value']
    if len(values) and values.min() < 0 < values.max():
        fig.add_hline(y=0, line_dash='dash', line_color='red', opacity=0.5)
    if retirement_age is not None:
        fig.add_vline(
            x=retirement_age,
            line_dash="dash",
            line_color="gray",
            annotation_text="Retirement",
            annotation_position="top"
        )
    return fig


def prepare_figure_for_report(fig, title):
    """
    Prepare a Plotly figure for the HTML report.
    """
    fig.update_layout(
        title=title,
        title_x=0.5,
        plot_bgcolor='white',
        paper_bgcolor='white',
        title_font_size=20,
        showlegend=True
    )
    return fig


# -----------------------------------------------
# HTML Report Generation
# -----------------------------------------------
REPORT_TEMPLATE = """
<html>
<head>
    <title>Housing Strategy Retirement Report</title>
    <style>
        body { font-family: Arial, sans-serif; margin: 40px; }
        .header { text-align: center; margin-bottom: 30px; }
        .section { margin: 20px 0; padding: 20px; border: 1px solid #eee; border-radius: 5px; }
        .metric { margin: 10px 0; }
        .plot { margin: 20px 0; text-align: center; }
        .info { padding: 15px; background-color: #d1ecf1; border: 1px solid #bee5eb; border-radius: 4px; }
        .negative { color: #b00020; font-weight: bold; }
        table { border-collapse: collapse; width: 100%; margin: 20px 0; }
        th, td { border: 1px solid #ddd; padding: 8px; text-align: right; }
        th { background-color: #f2f2f2; }
    </style>
</head>
<body>
    <div class="header">
        <h1>Housing Strategy Retirement Report</h1>
        <p>Generated on {{ generation_date }}</p>
    </div>
    <div class="section">
        <h2>Summary</h2>
        <div class="info">Highest net position at age {{ profile.life_expectancy - 1 }}: {{ best_scenario }}</div>
        {% for label, value in final_net_positions.items() %}
        <div class="metric">{{ label }}: ${{ '{:,.2f}'.format(value) }}</div>
        {% endfor %}
        {% for label, age in payoff_ages.items() if age is not none %}
        <div class="metric">{{ label }} paid off at age {{ age }}</div>
        {% endfor %}
    </div>
    <div class="section">
        <h2>Timeline</h2>
        <div class="metric">Current Age: {{ profile.start_age }}</div>
        <div class="metric">Retirement Age: {{ profile.retirement_age }}</div>
        <div class="metric">Life Expectancy: {{ profile.life_expectancy }}</div>
        <div class="metric">Inflation: {{ '{:.1%}'.format(profile.inflation_rate) }}</div>
    </div>
    {% for table in tables %}
    <div class="section">
        <h2>{{ table.title }}</h2>
        <table>
            <tr>{% for column in table.columns %}<th>{{ column }}</th>{% endfor %}</tr>
            {% for row in table.rows %}
            <tr>
                <td>{{ row['Age'] }}</td>
                {% for column in table.columns[1:] %}
                <td{% if row[column] < 0 %} class="negative"{% endif %}>${{ '{:,.2f}'.format(row[column]) }}</td>
                {% endfor %}
            </tr>
            {% endfor %}
        </table>
    </div>
    {% endfor %}
    {% if healthcare %}
    <div class="section">
        <h2>Healthcare Costs</h2>
        <table>
            <tr><th>Age</th><th>Monthly Premiums</th><th>Out of Pocket</th><th>Annual Cost</th></tr>
            {% for row in healthcare %}
            <tr>
                <td>{{ row.age }}</td>
                <td>${{ '{:,.2f}'.format(row.monthly_premium) }}</td>
                <td>${{ '{:,.2f}'.format(row.out_of_pocket) }}</td>
                <td>${{ '{:,.2f}'.format(row.period_value) }}</td>
            </tr>
            {% endfor %}
        </table>
    </div>
    {% endif %}
    {% if tax_analysis %}
    <div class="section">
        <h2>Tax Analysis (first retirement year)</h2>
        <div class="metric">Gross Income: ${{ '{:,.2f}'.format(tax_analysis.gross_income) }}</div>
        <div class="metric">Deductions: ${{ '{:,.2f}'.format(tax_analysis.deductions) }}</div>
        <div class="metric">Federal Tax: ${{ '{:,.2f}'.format(tax_analysis.federal_tax) }}</div>
        <div class="metric">State Tax: ${{ '{:,.2f}'.format(tax_analysis.state_tax) }}</div>
        <div class="metric">Effective Tax Rate: {{ '{:.1%}'.format(tax_analysis.effective_rate) }}</div>
    </div>
    {% endif %}
    {% if figures %}
    <div class="section">
        <h2>Key Visualizations</h2>
        {% for fig in figures %}
        <div class="plot">{{ fig.html }}</div>
        {% endfor %}
    </div>
    {% endif %}
    <div class="section">
        <h2>Key Assumptions and Notes</h2>
        <ul>
            <li>Home equity is the appreciated market value of the home, not value minus the loan balance</li>
            <li>Investments grow at a fixed annual rate; no market volatility is modeled</li>
            <li>Retirement withdrawals cover housing, living and healthcare costs not met by Social Security and other income</li>
            <li>All costs inflate annually from the first projected year</li>
        </ul>
    </div>
</body>
</html>
"""


def generate_html_report(result, figures=None, tax_analysis=None) -> str:
    """
    Generate an HTML report from a projection result.

    figures: optional list of {'figure': go.Figure, 'title': str}
    tax_analysis: optional TaxBreakdown shown in the tax section
    """
    tables = []
    for title, attribute in CSV_BLOCKS:
        table = getattr(result, attribute)
        tables.append({
            'title': title,
            'columns': list(table.columns),
            'rows': table.to_dict('records')
        })

    figure_data = []
    for fig_dict in figures or []:
        fig = prepare_figure_for_report(fig_dict['figure'], fig_dict['title'])
        figure_data.append({
            'title': fig_dict['title'],
            'html': fig.to_html(full_html=False, include_plotlyjs='cdn')
        })

    template = Template(REPORT_TEMPLATE)
    return template.render(
        generation_date=date.today().strftime("%B %d, %Y"),
        profile=result.profile,
        best_scenario=result.best_scenario,
        final_net_positions=result.final_net_positions,
        payoff_ages={SCENARIO_LABELS[kind]: age for kind, age in result.payoff_ages.items()},
        tables=tables,
        healthcare=result.healthcare,
        tax_analysis=tax_analysis,
        figures=figure_data
    )
