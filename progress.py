from dataclasses import dataclass, field
from typing import Optional

from models import Budget, CategoryGroup


def percent_of(part: int, whole: int) -> float:
    """``part / whole * 100``, defined as 0 when ``whole`` is not positive."""
    if whole <= 0:
        return 0.0
    return part / whole * 100


def capped_percent(part: int, whole: int) -> float:
    return min(100.0, percent_of(part, whole))


@dataclass(frozen=True)
class CategoryProgress:
    id: Optional[int]
    name: str
    limit_cents: int
    spent_cents: int
    remaining_cents: int
    percentage: float
    color: str
    group: CategoryGroup


@dataclass(frozen=True)
class BudgetProgress:
    total_budget_cents: int
    total_spent_cents: int
    total_remaining_cents: int
    percentage: float
    categories: list[CategoryProgress] = field(default_factory=list)

    def category(self, name: str) -> Optional[CategoryProgress]:
        for row in self.categories:
            if row.name == name:
                return row
        return None


def category_progress(category) -> CategoryProgress:
    return CategoryProgress(
        id=category.id,
        name=category.name,
        limit_cents=category.limit_cents,
        spent_cents=category.spent_cents,
        # Overspend shows up as a negative remainder; only the percentage is capped.
        remaining_cents=category.limit_cents - category.spent_cents,
        percentage=capped_percent(category.spent_cents, category.limit_cents),
        color=category.color,
        group=category.group,
    )


def compute_progress(budget: Budget) -> BudgetProgress:
    rows = [category_progress(category) for category in budget.categories]
    total_spent = sum(row.spent_cents for row in rows)
    return BudgetProgress(
        total_budget_cents=budget.total_budget_cents,
        total_spent_cents=total_spent,
        total_remaining_cents=budget.total_budget_cents - total_spent,
        percentage=capped_percent(total_spent, budget.total_budget_cents),
        categories=rows,
    )
