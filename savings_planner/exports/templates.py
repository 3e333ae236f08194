"""
Report Templates

HTML and plain text progress reports built from the goal ledger.
"""
from datetime import datetime
from html import escape
from typing import Sequence

from savings_planner.aggregation.engine import goal_progress, totals
from savings_planner.goals.models import BASE_CURRENCY, FOREIGN_CURRENCY, Currency, Goal


CURRENCY_SYMBOLS = {
    Currency.INR: "₹",
    Currency.USD: "$",
}


def format_money(amount: float, currency: Currency) -> str:
    """Format an amount with its currency symbol."""
    return f"{CURRENCY_SYMBOLS.get(currency, '')}{amount:,.2f}"


def get_progress_color(progress: float) -> str:
    """Get bar color for a progress percentage."""
    if progress >= 100:
        return "#22C55E"   # Green
    if progress >= 75:
        return "#3B82F6"   # Blue
    if progress >= 50:
        return "#EAB308"   # Yellow
    if progress >= 25:
        return "#F97316"   # Orange
    return "#EF4444"       # Red


# =============================================================================
# BASE TEMPLATE
# =============================================================================

BASE_HTML_TEMPLATE = """
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{title}</title>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 20px; color: #333; }}
        .header {{ text-align: center; border-bottom: 2px solid #1e40af; padding-bottom: 20px; margin-bottom: 30px; }}
        .summary {{ background: #f8fafc; padding: 20px; border-radius: 8px; margin-bottom: 30px; }}
        .goals-grid {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(300px, 1fr)); gap: 20px; }}
        .goal-card {{ border: 1px solid #e2e8f0; border-radius: 8px; padding: 15px; }}
        .progress-bar {{ width: 100%; height: 20px; background: #e2e8f0; border-radius: 10px; overflow: hidden; }}
        .progress-fill {{ height: 100%; }}
        .footer {{ margin-top: 40px; text-align: center; color: #64748b; font-size: 12px; }}
        @media print {{ body {{ margin: 0; }} }}
    </style>
</head>
<body>
{body}
</body>
</html>
"""


def build_progress_report(
    goals: Sequence[Goal],
    exchange_rate: float,
    generated_at: datetime,
) -> tuple[str, str]:
    """
    Build the savings progress report.

    Returns: (html_body, plain_text_body)
    """
    portfolio = totals(goals, exchange_rate)
    base = portfolio.base_currency
    generated = generated_at.strftime("%Y-%m-%d %H:%M")

    # Summary section
    summary_html = f"""
    <div class="summary">
        <h2>Portfolio Summary</h2>
        <p>Total Target: <strong>{format_money(portfolio.total_target, base)}</strong></p>
        <p>Total Saved: <strong>{format_money(portfolio.total_saved, base)}</strong></p>
        <p>Overall Progress: <strong>{portfolio.overall_progress_pct:.1f}%</strong></p>
        <p>Exchange Rate: 1 {FOREIGN_CURRENCY.value} = {exchange_rate:.2f} {BASE_CURRENCY.value}</p>
    </div>
    """

    goal_cards = []
    text_goals = []
    for goal in goals:
        progress = goal_progress(goal, exchange_rate)
        width = min(progress.progress_pct, 100.0)
        name = escape(goal.name)
        goal_cards.append(f"""
        <div class="goal-card">
            <h3>{name}</h3>
            <p>{format_money(goal.saved, goal.currency)} of {format_money(goal.target, goal.currency)}</p>
            <div class="progress-bar">
                <div class="progress-fill" style="width: {width:.1f}%; background: {get_progress_color(progress.progress_pct)};"></div>
            </div>
            <p>{progress.progress_pct:.1f}% complete, {progress.contributions_count} contribution(s)</p>
        </div>
        """)
        text_goals.append(
            f"- {goal.name}: {format_money(goal.saved, goal.currency)} of "
            f"{format_money(goal.target, goal.currency)} ({progress.progress_pct:.1f}%)"
        )

    if not goal_cards:
        goal_cards.append("<p>No goals yet.</p>")
        text_goals.append("No goals yet.")

    body = f"""
    <div class="header">
        <h1>Savings Progress Report</h1>
        <p>Generated on {generated}</p>
    </div>
    {summary_html}
    <h2>Goals ({len(goals)})</h2>
    <div class="goals-grid">
        {''.join(goal_cards)}
    </div>
    <div class="footer">Amounts in the summary are converted to {base.value}.</div>
    """
    html_body = BASE_HTML_TEMPLATE.format(title="Savings Progress Report", body=body)

    plain_text = f"""
SAVINGS PROGRESS REPORT
Generated on {generated}

Total Target: {format_money(portfolio.total_target, base)}
Total Saved: {format_money(portfolio.total_saved, base)}
Overall Progress: {portfolio.overall_progress_pct:.1f}%
Exchange Rate: 1 {FOREIGN_CURRENCY.value} = {exchange_rate:.2f} {BASE_CURRENCY.value}

Goals ({len(goals)}):
{chr(10).join(text_goals)}
"""

    return html_body, plain_text.strip()
