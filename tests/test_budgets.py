from datetime import date, datetime

import pytest
from pydantic import ValidationError
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from database import Base
from errors import InvalidInput, NotFound
from models import BudgetPeriod, CategoryGroup, TransactionType
from schemas import (
    BudgetCategoryIn,
    BudgetCategoryUpdate,
    BudgetIn,
    BudgetSubcategoryIn,
    BudgetUpdate,
    NotificationSettingsIn,
    TrackSpendingIn,
    TransactionIn,
)
from services import BudgetService, TransactionService, resync_active_budgets


def _session() -> Session:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    return Session(engine)


def _january(**overrides) -> BudgetIn:
    data = dict(
        name="January",
        total_budget_cents=100_000,
        period=BudgetPeriod.monthly,
        start_date=date(2025, 1, 1),
        categories=[
            BudgetCategoryIn(
                name="Grocery",
                limit_cents=20_000,
                group=CategoryGroup.essential,
                subcategories=[BudgetSubcategoryIn(name="Snacks", limit_cents=2_000)],
            ),
            BudgetCategoryIn(
                name="Dining",
                limit_cents=10_000,
                color="#2196f3",
                group=CategoryGroup.non_essential,
            ),
        ],
    )
    data.update(overrides)
    return BudgetIn(**data)


def _expense(description: str, amount: int, on: date) -> TransactionIn:
    return TransactionIn(
        description=description, amount_cents=amount, type=TransactionType.expense, date=on
    )


def test_create_budget_derives_end_date_and_categories() -> None:
    with _session() as session:
        budget = BudgetService(session).create(_january())

        assert budget.end_date == date(2025, 2, 1)
        assert [c.name for c in budget.categories] == ["Grocery", "Dining"]
        assert [c.position for c in budget.categories] == [0, 1]
        grocery = budget.categories[0]
        (snacks,) = grocery.subcategories
        assert snacks.is_subcategory is True
        assert snacks.color == grocery.color
        assert snacks.group == CategoryGroup.essential
        assert snacks.budget_id is None
        assert budget.threshold_alerts is True


def test_duplicate_category_names_are_rejected() -> None:
    with _session() as session:
        service = BudgetService(session)
        with pytest.raises(InvalidInput):
            service.create(
                _january(
                    categories=[
                        BudgetCategoryIn(name="Food", limit_cents=1_000),
                        BudgetCategoryIn(name="Food", limit_cents=2_000),
                    ]
                )
            )

        budget = service.create(_january())
        with pytest.raises(InvalidInput):
            service.add_category(
                budget.id, BudgetCategoryIn(name="Dining", limit_cents=500)
            )


def test_update_rederives_end_date_when_window_changes() -> None:
    with _session() as session:
        service = BudgetService(session)
        budget = service.create(_january())

        updated = service.update(budget.id, BudgetUpdate(period=BudgetPeriod.weekly))
        assert updated.end_date == date(2025, 1, 8)

        updated = service.update(budget.id, BudgetUpdate(start_date=date(2025, 1, 31)))
        assert updated.end_date == date(2025, 2, 7)

        updated = service.update(
            budget.id, BudgetUpdate(period=BudgetPeriod.monthly, notes="tight month")
        )
        assert updated.end_date == date(2025, 2, 28)
        assert updated.notes == "tight month"

        renamed = service.update(budget.id, BudgetUpdate(name="  Late January  "))
        assert renamed.name == "Late January"
        assert renamed.end_date == date(2025, 2, 28)


def test_update_rejects_unknown_and_empty_fields() -> None:
    with pytest.raises(ValidationError):
        BudgetUpdate(user_id=7)
    with pytest.raises(ValidationError):
        BudgetCategoryUpdate(spent_cents=0)

    with _session() as session:
        service = BudgetService(session)
        budget = service.create(_january())
        with pytest.raises(InvalidInput):
            service.update(budget.id, BudgetUpdate(total_budget_cents=None))
        with pytest.raises(InvalidInput):
            service.update(budget.id, BudgetUpdate(previous_budget_id=budget.id))
        with pytest.raises(NotFound):
            service.update(budget.id, BudgetUpdate(previous_budget_id=999))


def test_category_update_and_delete() -> None:
    with _session() as session:
        service = BudgetService(session)
        budget = service.create(_january())
        grocery_id = budget.categories[0].id
        dining_id = budget.categories[1].id
        snacks_id = budget.categories[0].subcategories[0].id

        budget = service.update_category(
            budget.id, dining_id, BudgetCategoryUpdate(limit_cents=15_000, alert_threshold=50)
        )
        assert budget.category_by_name("Dining").limit_cents == 15_000
        assert budget.category_by_name("Dining").alert_threshold == 50

        with pytest.raises(InvalidInput):
            service.update_category(
                budget.id, dining_id, BudgetCategoryUpdate(name="Grocery")
            )

        budget = service.delete_category(budget.id, snacks_id)
        assert budget.categories[0].subcategories == []

        budget = service.delete_category(budget.id, grocery_id)
        assert [c.name for c in budget.categories] == ["Dining"]
        assert budget.categories[0].position == 0

        with pytest.raises(NotFound):
            service.delete_category(budget.id, grocery_id)


def test_track_spending_accumulates_on_category() -> None:
    with _session() as session:
        service = BudgetService(session)
        budget = service.create(_january())
        dining = budget.categories[1]

        service.track_spending(
            TrackSpendingIn(budget_id=budget.id, category_id=dining.id, amount_cents=2_500)
        )
        budget = service.track_spending(
            TrackSpendingIn(budget_id=budget.id, category_id=dining.id, amount_cents=1_000)
        )

        assert budget.category_by_name("Dining").spent_cents == 3_500
        progress = service.progress(budget.id)
        assert progress.total_spent_cents == 3_500
        assert progress.category("Dining").percentage == 35.0


def test_sync_from_store_replaces_spend_and_raises_alerts() -> None:
    with _session() as session:
        transactions = TransactionService(session)
        transactions.create(_expense("Grocery Store", 5_000, date(2025, 1, 5)))
        transactions.create(_expense("Dining with friends", 9_000, date(2025, 1, 12)))
        transactions.create(_expense("Grocery Store", 7_000, date(2025, 2, 10)))
        transactions.create(_expense("Cinema", 1_200, date(2025, 1, 20)))
        transactions.create(
            TransactionIn(
                description="Salary",
                amount_cents=300_000,
                type=TransactionType.income,
                date=date(2025, 1, 25),
            )
        )

        service = BudgetService(session)
        budget = service.create(_january())
        service.track_spending(
            TrackSpendingIn(
                budget_id=budget.id, category_id=budget.categories[0].id, amount_cents=999
            )
        )

        budget, alerts = service.sync_from_transactions(budget.id)
        assert budget.category_by_name("Grocery").spent_cents == 5_000
        assert budget.category_by_name("Dining").spent_cents == 9_000
        assert [(a.category, a.percentage) for a in alerts] == [("Dining", 90.0)]

        budget, again = service.sync_from_transactions(budget.id)
        assert budget.category_by_name("Grocery").spent_cents == 5_000
        assert again == alerts


def test_sync_respects_disabled_alerts() -> None:
    with _session() as session:
        TransactionService(session).create(
            _expense("Dining out", 9_500, date(2025, 1, 5))
        )
        service = BudgetService(session)
        budget = service.create(
            _january(notifications=NotificationSettingsIn(threshold_alerts=False))
        )

        budget, alerts = service.sync_from_transactions(budget.id)
        assert budget.category_by_name("Dining").spent_cents == 9_500
        assert alerts == []


def test_compare_requires_both_budgets() -> None:
    with _session() as session:
        service = BudgetService(session)
        january = service.create(_january())
        february = service.create(
            _january(name="February", start_date=date(2025, 2, 1), total_budget_cents=120_000)
        )

        comparison = service.compare(january.id, february.id)
        assert comparison.difference.total_budget_cents == 20_000

        with pytest.raises(NotFound, match="One or both budgets not found"):
            service.compare(january.id, 404)


def test_insights_use_previous_budget_and_clock() -> None:
    with _session() as session:
        transactions = TransactionService(session)
        transactions.create(_expense("Dining night", 8_000, date(2025, 2, 3)))
        transactions.create(_expense("Dining lunch", 2_000, date(2025, 1, 3)))

        service = BudgetService(session, clock=lambda: datetime(2025, 2, 2))
        january = service.create(_january())
        service.sync_from_transactions(january.id)
        february = service.create(
            _january(
                name="February",
                start_date=date(2025, 2, 1),
                previous_budget_id=january.id,
            )
        )
        service.sync_from_transactions(february.id)

        report = service.insights(february.id)

        assert report.name == "February"
        assert report.total_spent_cents == 8_000
        titles = [i.title for i in report.insights]
        assert "Categories Approaching Limits" in titles
        assert "Higher Spending Rate" in titles
        assert "Savings Opportunity" in titles
        assert "Budget On Track" not in titles


def test_deleting_previous_budget_unlinks_successor() -> None:
    with _session() as session:
        service = BudgetService(session)
        january = service.create(_january())
        february = service.create(
            _january(name="February", previous_budget_id=january.id)
        )

        service.delete(january.id)
        with pytest.raises(NotFound):
            service.get(january.id)
        assert service.get(february.id).previous_budget_id is None


def test_resync_active_budgets_only_touches_open_windows() -> None:
    with _session() as session:
        TransactionService(session).create(
            _expense("Grocery Store", 4_000, date(2025, 1, 10))
        )
        service = BudgetService(session)
        january = service.create(_january())
        december = service.create(
            _january(name="December", start_date=date(2024, 12, 1))
        )

        assert resync_active_budgets(session, on_date=date(2025, 1, 15)) == 1

        assert service.get(january.id).category_by_name("Grocery").spent_cents == 4_000
        assert service.get(december.id).category_by_name("Grocery").spent_cents == 0


def test_blank_names_are_rejected_after_stripping() -> None:
    with pytest.raises(ValidationError):
        BudgetCategoryIn(name="   ", limit_cents=1_000)
    with pytest.raises(ValidationError):
        BudgetSubcategoryIn(name="\t", limit_cents=1_000)
    with pytest.raises(ValidationError):
        BudgetCategoryUpdate(name="  ")
    with pytest.raises(ValidationError):
        _january(name="   ")

    assert BudgetCategoryIn(name="  Food ", limit_cents=1_000).name == "Food"


def test_padded_category_name_does_not_swallow_other_spend() -> None:
    with _session() as session:
        TransactionService(session).create(
            _expense("Dining out", 3_000, date(2025, 1, 5))
        )
        service = BudgetService(session)
        budget = service.create(
            _january(
                categories=[
                    BudgetCategoryIn(name=" Rent ", limit_cents=50_000),
                    BudgetCategoryIn(name="Dining", limit_cents=10_000),
                ]
            )
        )

        budget, _ = service.sync_from_transactions(budget.id)

        assert budget.category_by_name("Rent").spent_cents == 0
        assert budget.category_by_name("Dining").spent_cents == 3_000
