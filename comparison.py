from dataclasses import dataclass
from typing import Optional

from models import Budget, BudgetPeriod
from progress import BudgetProgress, CategoryProgress, compute_progress


@dataclass(frozen=True)
class BudgetSummary:
    name: str
    period: BudgetPeriod
    total_budget_cents: int
    total_spent_cents: int
    total_remaining_cents: int
    percentage: float


@dataclass(frozen=True)
class SummaryDifference:
    total_budget_cents: int
    total_spent_cents: int
    total_remaining_cents: int
    percentage: float


@dataclass(frozen=True)
class CategorySnapshot:
    limit_cents: int
    spent_cents: int
    remaining_cents: int
    percentage: float


@dataclass(frozen=True)
class CategoryDifference:
    limit_cents: int
    spent_cents: int
    remaining_cents: int
    percentage: float


@dataclass(frozen=True)
class CategoryComparison:
    name: str
    budget_a: Optional[CategorySnapshot]
    budget_b: Optional[CategorySnapshot]
    difference: CategoryDifference


@dataclass(frozen=True)
class BudgetComparison:
    budget_a: BudgetSummary
    budget_b: BudgetSummary
    difference: SummaryDifference
    categories: list[CategoryComparison]


ZERO_SNAPSHOT = CategorySnapshot(
    limit_cents=0, spent_cents=0, remaining_cents=0, percentage=0.0
)


def _summary(budget: Budget, progress: BudgetProgress) -> BudgetSummary:
    return BudgetSummary(
        name=budget.name,
        period=budget.period,
        total_budget_cents=budget.total_budget_cents,
        total_spent_cents=progress.total_spent_cents,
        total_remaining_cents=progress.total_remaining_cents,
        percentage=progress.percentage,
    )


def _snapshot(row: Optional[CategoryProgress]) -> Optional[CategorySnapshot]:
    if row is None:
        return None
    return CategorySnapshot(
        limit_cents=row.limit_cents,
        spent_cents=row.spent_cents,
        remaining_cents=row.remaining_cents,
        percentage=row.percentage,
    )


def _category_names(a: BudgetProgress, b: BudgetProgress) -> list[str]:
    names: dict[str, None] = {}
    for row in a.categories + b.categories:
        names.setdefault(row.name, None)
    return list(names)


def compare_budgets(a: Budget, b: Budget) -> BudgetComparison:
    """Side-by-side view of two budgets; every difference is ``b - a``.

    Categories are matched by exact name. A category missing on one side is
    reported as ``None`` there and counts as zero in the difference.
    """
    progress_a = compute_progress(a)
    progress_b = compute_progress(b)
    summary_a = _summary(a, progress_a)
    summary_b = _summary(b, progress_b)

    categories: list[CategoryComparison] = []
    for name in _category_names(progress_a, progress_b):
        side_a = _snapshot(progress_a.category(name))
        side_b = _snapshot(progress_b.category(name))
        base = side_a or ZERO_SNAPSHOT
        other = side_b or ZERO_SNAPSHOT
        categories.append(
            CategoryComparison(
                name=name,
                budget_a=side_a,
                budget_b=side_b,
                difference=CategoryDifference(
                    limit_cents=other.limit_cents - base.limit_cents,
                    spent_cents=other.spent_cents - base.spent_cents,
                    remaining_cents=other.remaining_cents - base.remaining_cents,
                    percentage=other.percentage - base.percentage,
                ),
            )
        )

    return BudgetComparison(
        budget_a=summary_a,
        budget_b=summary_b,
        difference=SummaryDifference(
            total_budget_cents=summary_b.total_budget_cents
            - summary_a.total_budget_cents,
            total_spent_cents=summary_b.total_spent_cents
            - summary_a.total_spent_cents,
            total_remaining_cents=summary_b.total_remaining_cents
            - summary_a.total_remaining_cents,
            percentage=summary_b.percentage - summary_a.percentage,
        ),
        categories=categories,
    )
