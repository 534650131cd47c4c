"""Budget health insights.

Each rule below looks at one aspect of a budget and may add an insight. The
rules are independent (several can fire for the same budget) and always run
in the same order, so the output list is stable for a given input.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Iterable, Optional

from matching import match_for_report
from models import Budget, CategoryGroup, Transaction, TransactionType
from periods import midpoint
from progress import BudgetProgress, compute_progress, percent_of

DEPLETION_PERCENT = 90
ON_TRACK_PERCENT = 30
AT_RISK_PERCENT = 80
SPIKE_MIN_TRANSACTIONS = 3
SPIKE_FACTOR = 1.5
RATE_INCREASE_FACTOR = 1.2
RATE_DECREASE_FACTOR = 0.8
NON_ESSENTIAL_SHARE = 0.3


class InsightKind(str, Enum):
    warning = "warning"
    positive = "positive"
    info = "info"
    suggestion = "suggestion"


@dataclass(frozen=True)
class FlaggedTransaction:
    description: str
    amount_cents: int
    date: date


@dataclass(frozen=True)
class Insight:
    kind: InsightKind
    title: str
    description: str
    categories: list[str] = field(default_factory=list)
    transactions: list[FlaggedTransaction] = field(default_factory=list)


def _pct(value: float) -> str:
    return f"{value:.1f}"


def _depletion(progress: BudgetProgress) -> Optional[Insight]:
    if progress.percentage <= DEPLETION_PERCENT:
        return None
    return Insight(
        kind=InsightKind.warning,
        title="Budget Almost Depleted",
        description=(
            f"You've used {_pct(progress.percentage)}% of your total budget. "
            "Consider adjusting your spending for the rest of the period."
        ),
    )


def _on_track(
    budget: Budget, progress: BudgetProgress, now: datetime
) -> Optional[Insight]:
    if progress.percentage >= ON_TRACK_PERCENT:
        return None
    if now <= midpoint(budget.start_date, budget.end_date):
        return None
    return Insight(
        kind=InsightKind.positive,
        title="Budget On Track",
        description=(
            f"You've only used {_pct(progress.percentage)}% of your budget and "
            "you're halfway through the period. You're doing great!"
        ),
    )


def _categories_at_risk(progress: BudgetProgress) -> Optional[Insight]:
    at_risk = [row.name for row in progress.categories if row.percentage >= AT_RISK_PERCENT]
    if not at_risk:
        return None
    return Insight(
        kind=InsightKind.warning,
        title="Categories Approaching Limits",
        description=(
            f"{len(at_risk)} categories are at or above {AT_RISK_PERCENT}% of "
            f"their budget: {', '.join(at_risk)}."
        ),
        categories=at_risk,
    )


def _spending_spikes(
    budget: Budget, transactions: Iterable[Transaction]
) -> list[Insight]:
    names = [category.name for category in budget.categories]
    grouped: dict[str, list[FlaggedTransaction]] = {}
    for txn in transactions:
        if txn.type != TransactionType.expense:
            continue
        name = match_for_report(txn.description, names)
        grouped.setdefault(name, []).append(
            FlaggedTransaction(
                description=txn.description,
                amount_cents=abs(txn.amount_cents),
                date=txn.date,
            )
        )

    insights: list[Insight] = []
    for name, items in grouped.items():
        if len(items) < SPIKE_MIN_TRANSACTIONS:
            continue
        average = sum(item.amount_cents for item in items) / len(items)
        flagged = [item for item in items if item.amount_cents > average * SPIKE_FACTOR]
        if not flagged:
            continue
        insights.append(
            Insight(
                kind=InsightKind.info,
                title=f"Unusual Spending in {name}",
                description=(
                    f"You had {len(flagged)} transactions in {name} that were "
                    "significantly higher than your average spending in this category."
                ),
                categories=[name],
                transactions=flagged,
            )
        )
    return insights


def _previous_period(
    progress: BudgetProgress, previous_budget: Optional[Budget]
) -> Optional[Insight]:
    if previous_budget is None:
        return None
    previous = compute_progress(previous_budget)
    if previous.percentage <= 0:
        return None

    ratio = progress.percentage / previous.percentage
    if progress.percentage > previous.percentage * RATE_INCREASE_FACTOR:
        return Insight(
            kind=InsightKind.warning,
            title="Higher Spending Rate",
            description=(
                f"You're spending at a {_pct(ratio * 100 - 100)}% higher rate "
                "compared to your previous budget period."
            ),
        )
    if progress.percentage < previous.percentage * RATE_DECREASE_FACTOR:
        return Insight(
            kind=InsightKind.positive,
            title="Lower Spending Rate",
            description=(
                f"You're spending at a {_pct((1 - ratio) * 100)}% lower rate "
                "compared to your previous budget period. Great job!"
            ),
        )
    return None


def _savings_opportunity(
    budget: Budget, progress: BudgetProgress
) -> Optional[Insight]:
    non_essential = [
        c for c in budget.categories if c.group == CategoryGroup.non_essential
    ]
    if not non_essential:
        return None
    spent = sum(c.spent_cents for c in non_essential)
    if spent <= progress.total_spent_cents * NON_ESSENTIAL_SHARE:
        return None
    share = percent_of(spent, progress.total_spent_cents)
    return Insight(
        kind=InsightKind.suggestion,
        title="Savings Opportunity",
        description=(
            f"{_pct(share)}% of your spending is in non-essential categories. "
            "Consider reducing spending in these areas to increase savings."
        ),
        categories=[c.name for c in non_essential],
    )


def generate_insights(
    budget: Budget,
    progress: BudgetProgress,
    transactions: Iterable[Transaction],
    previous_budget: Optional[Budget] = None,
    *,
    now: datetime,
) -> list[Insight]:
    insights: list[Insight] = []
    for insight in (
        _depletion(progress),
        _on_track(budget, progress, now),
        _categories_at_risk(progress),
    ):
        if insight:
            insights.append(insight)
    insights.extend(_spending_spikes(budget, transactions))
    for insight in (
        _previous_period(progress, previous_budget),
        _savings_opportunity(budget, progress),
    ):
        if insight:
            insights.append(insight)
    return insights
