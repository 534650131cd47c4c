from datetime import date

from models import Budget, BudgetCategory, BudgetPeriod, CategoryGroup, Transaction, TransactionType
from sync import resync, sync_from_transactions, threshold_alerts, track_spending


def _budget(*categories: BudgetCategory, alerts: bool = True) -> Budget:
    budget = Budget(
        name="January",
        total_budget_cents=100_000,
        period=BudgetPeriod.monthly,
        start_date=date(2025, 1, 1),
        end_date=date(2025, 2, 1),
        threshold_alerts=alerts,
    )
    budget.categories.extend(categories)
    return budget


def _category(name: str, limit: int, spent: int = 0, threshold: int = 80) -> BudgetCategory:
    return BudgetCategory(
        name=name,
        limit_cents=limit,
        spent_cents=spent,
        color="#3f51b5",
        group=CategoryGroup.other,
        alert_threshold=threshold,
        is_subcategory=False,
    )


def _expense(description: str, amount: int, on: date = date(2025, 1, 10)) -> Transaction:
    return Transaction(
        description=description,
        amount_cents=-amount,
        type=TransactionType.expense,
        date=on,
    )


def test_grocery_store_expense_lands_in_grocery() -> None:
    grocery = _category("Grocery", 20_000, spent=1_234)
    budget = _budget(grocery)

    sync_from_transactions(budget, [_expense("Grocery Store", 5_000)])

    assert grocery.spent_cents == 5_000


def test_resync_is_idempotent() -> None:
    food = _category("Food", 20_000)
    rent = _category("Rent", 80_000)
    budget = _budget(food, rent)
    transactions = [
        _expense("Food market", 3_000),
        _expense("Rent January", 70_000),
        _expense("Food delivery", 1_500),
    ]

    first = sync_from_transactions(budget, transactions)
    snapshot = [(c.name, c.spent_cents) for c in budget.categories]
    second = sync_from_transactions(budget, transactions)

    assert snapshot == [("Food", 4_500), ("Rent", 70_000)]
    assert [(c.name, c.spent_cents) for c in budget.categories] == snapshot
    assert first == second


def test_window_type_and_unmatched_filters() -> None:
    food = _category("Food", 20_000)
    budget = _budget(food)
    transactions = [
        _expense("Food before window", 1_000, on=date(2024, 12, 31)),
        _expense("Food on first day", 2_000, on=date(2025, 1, 1)),
        _expense("Food on last day", 3_000, on=date(2025, 2, 1)),
        _expense("Food after window", 4_000, on=date(2025, 2, 2)),
        _expense("Cinema", 5_000),
        Transaction(
            description="Food refund",
            amount_cents=6_000,
            type=TransactionType.income,
            date=date(2025, 1, 15),
        ),
    ]

    result = resync(budget, transactions)

    assert food.spent_cents == 5_000
    assert result.matched == 2
    assert result.dropped == 1


def test_alerts_fire_at_threshold_and_are_uncapped() -> None:
    budget = _budget(
        _category("Food", 10_000, spent=8_000),
        _category("Fun", 10_000, spent=15_000),
        _category("Rent", 10_000, spent=7_999),
    )

    alerts = threshold_alerts(budget)

    assert [(a.category, a.percentage) for a in alerts] == [
        ("Food", 80.0),
        ("Fun", 150.0),
    ]
    assert alerts[0].threshold == 80


def test_alerts_respect_category_threshold_and_budget_switch() -> None:
    strict = _category("Food", 10_000, spent=5_000, threshold=50)
    assert [a.category for a in threshold_alerts(_budget(strict))] == ["Food"]

    muted = _budget(_category("Food", 10_000, spent=9_000), alerts=False)
    assert threshold_alerts(muted) == []


def test_zero_limit_category_does_not_alert() -> None:
    budget = _budget(_category("Gifts", 0, spent=500))
    assert threshold_alerts(budget) == []


def test_track_spending_accumulates() -> None:
    food = _category("Food", 10_000, spent=1_000)
    track_spending(food, 2_500)
    track_spending(food, 500)
    assert food.spent_cents == 4_000
