from decimal import Decimal, ROUND_HALF_UP

from models import (
    DEFAULT_ALERT_THRESHOLD,
    Budget,
    BudgetCategory,
    BudgetTemplate,
    TemplateCategory,
)
from progress import percent_of


def share_of(amount_cents: int, percentage: float) -> int:
    """``amount * percentage / 100`` rounded half-up to whole cents."""
    value = Decimal(amount_cents) * Decimal(str(percentage)) / Decimal(100)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def instantiate(template: BudgetTemplate, total_budget_cents: int) -> list[BudgetCategory]:
    """Turn a percentage template into concrete categories for ``total_budget_cents``.

    Top-level percentages are shares of the total; subcategory percentages are
    shares of their parent's computed limit. Percentages are taken as given,
    so a template that does not add up to 100 leaves part of the total
    unallocated.
    """
    categories: list[BudgetCategory] = []
    for tmpl_category in template.categories:
        limit = share_of(total_budget_cents, tmpl_category.percentage)
        category = BudgetCategory(
            name=tmpl_category.name,
            limit_cents=limit,
            spent_cents=0,
            color=tmpl_category.color,
            group=tmpl_category.group,
            alert_threshold=DEFAULT_ALERT_THRESHOLD,
            is_subcategory=False,
        )
        for tmpl_sub in tmpl_category.subcategories:
            category.subcategories.append(
                BudgetCategory(
                    name=tmpl_sub.name,
                    limit_cents=share_of(limit, tmpl_sub.percentage),
                    spent_cents=0,
                    color=tmpl_sub.color or tmpl_category.color,
                    group=tmpl_category.group,
                    alert_threshold=DEFAULT_ALERT_THRESHOLD,
                    is_subcategory=True,
                )
            )
        categories.append(category)
    return categories


def derive_template(budget: Budget) -> list[TemplateCategory]:
    """Express each top-level category limit as a percentage of the budget total.

    This is not an inverse of :func:`instantiate`: subcategories and alert
    thresholds are dropped, and cent rounding can shift percentages slightly.
    """
    return [
        TemplateCategory(
            name=category.name,
            percentage=percent_of(category.limit_cents, budget.total_budget_cents),
            group=category.group,
            color=category.color,
        )
        for category in budget.categories
    ]
