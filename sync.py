from dataclasses import dataclass
from typing import Iterable

from models import Budget, BudgetCategory, Transaction, TransactionType
from matching import match_for_sync
from progress import percent_of


@dataclass(frozen=True)
class Alert:
    category: str
    limit_cents: int
    spent_cents: int
    percentage: float
    threshold: int


@dataclass(frozen=True)
class SyncResult:
    alerts: list[Alert]
    matched: int
    dropped: int


def in_window(budget: Budget, txn: Transaction) -> bool:
    return budget.start_date <= txn.date <= budget.end_date


def track_spending(category: BudgetCategory, amount_cents: int) -> BudgetCategory:
    """Accumulate a manual spend; never combined with a resync in the same call."""
    category.spent_cents += amount_cents
    return category


def threshold_alerts(budget: Budget) -> list[Alert]:
    if not budget.threshold_alerts:
        return []
    alerts: list[Alert] = []
    for category in budget.categories:
        percentage = percent_of(category.spent_cents, category.limit_cents)
        if percentage >= category.alert_threshold:
            alerts.append(
                Alert(
                    category=category.name,
                    limit_cents=category.limit_cents,
                    spent_cents=category.spent_cents,
                    percentage=percentage,
                    threshold=category.alert_threshold,
                )
            )
    return alerts


def resync(budget: Budget, transactions: Iterable[Transaction]) -> SyncResult:
    by_name = {}
    for category in budget.categories:
        category.spent_cents = 0
        by_name.setdefault(category.name, category)

    matched = 0
    dropped = 0
    for txn in transactions:
        if txn.type != TransactionType.expense or not in_window(budget, txn):
            continue
        name = match_for_sync(txn.description, budget.categories)
        if name is None:
            dropped += 1
            continue
        by_name[name].spent_cents += abs(txn.amount_cents)
        matched += 1

    return SyncResult(alerts=threshold_alerts(budget), matched=matched, dropped=dropped)


def sync_from_transactions(
    budget: Budget, transactions: Iterable[Transaction]
) -> list[Alert]:
    """Recompute every category's spend from ``transactions`` and evaluate alerts.

    All ``spent_cents`` values are reset and re-summed, so running this twice
    over the same transactions yields the same budget and the same alerts.
    Expenses outside ``[start_date, end_date]`` and descriptions that match no
    category are ignored.
    """
    return resync(budget, transactions).alerts
