from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session, selectinload

from comparison import BudgetComparison, compare_budgets
from csv_utils import export_transactions
from errors import InvalidInput, NotFound
from insights import Insight, generate_insights
from matching import OTHER_CATEGORY, match_for_report
from models import (
    Budget,
    BudgetCategory,
    BudgetPeriod,
    BudgetTemplate,
    TemplateCategory,
    TemplateKind,
    TemplateSubcategory,
    Transaction,
    TransactionType,
)
from periods import (
    Period,
    advance_period,
    local_now,
    local_today,
    month_keys,
    trailing_months,
)
from progress import BudgetProgress, compute_progress
from schemas import (
    BudgetCategoryIn,
    BudgetCategoryUpdate,
    BudgetFromTemplateIn,
    BudgetIn,
    BudgetTemplateIn,
    BudgetTemplateUpdate,
    BudgetUpdate,
    SaveAsTemplateIn,
    TemplateCategoryIn,
    TrackSpendingIn,
    TransactionIn,
    TransactionQuery,
)
from sync import Alert, resync, track_spending
from system_templates import SYSTEM_TEMPLATES
from template_math import derive_template, instantiate

logger = logging.getLogger(__name__)


def get_current_user_id() -> int:
    return 1


class TransactionService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()

    @staticmethod
    def normalize_amount(amount_cents: int, txn_type: TransactionType) -> int:
        if txn_type == TransactionType.expense:
            return -abs(amount_cents)
        return abs(amount_cents)

    def create(self, data: TransactionIn) -> Transaction:
        txn = Transaction(
            user_id=self.user_id,
            description=data.description.strip(),
            amount_cents=self.normalize_amount(data.amount_cents, data.type),
            type=data.type,
            date=data.date,
        )
        self.session.add(txn)
        self.session.commit()
        self.session.refresh(txn)
        return txn

    def get(self, transaction_id: int) -> Transaction:
        txn = self.session.get(Transaction, transaction_id)
        if not txn or txn.user_id != self.user_id:
            raise NotFound("Transaction not found")
        return txn

    def delete(self, transaction_id: int) -> None:
        txn = self.get(transaction_id)
        self.session.delete(txn)
        self.session.commit()

    def list(self, query: TransactionQuery) -> list[Transaction]:
        order = Transaction.date.asc() if query.order == "asc" else Transaction.date.desc()
        stmt = (
            select(Transaction)
            .where(Transaction.user_id == self.user_id)
            .order_by(order, Transaction.id.desc())
            .limit(query.limit)
        )
        if query.type:
            stmt = stmt.where(Transaction.type == query.type)
        return self.session.scalars(stmt).all()

    def find_transactions(
        self,
        start: date,
        end: date,
        txn_type: Optional[TransactionType] = None,
    ) -> list[Transaction]:
        """Transactions dated within ``[start, end]``, oldest first."""
        if end < start:
            raise InvalidInput("Start date must be before end date")
        stmt = (
            select(Transaction)
            .where(
                Transaction.user_id == self.user_id,
                Transaction.date.between(start, end),
            )
            .order_by(Transaction.date.asc(), Transaction.id.asc())
        )
        if txn_type:
            stmt = stmt.where(Transaction.type == txn_type)
        return self.session.scalars(stmt).all()


@dataclass(frozen=True)
class BudgetInsights:
    name: str
    period: BudgetPeriod
    start_date: date
    end_date: date
    total_budget_cents: int
    total_spent_cents: int
    total_remaining_cents: int
    percentage: float
    insights: list[Insight]


class BudgetService:
    def __init__(
        self,
        session: Session,
        user_id: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()
        self.clock = clock or local_now
        self.transactions = TransactionService(session, self.user_id)

    def _load(self, budget_id: int) -> Optional[Budget]:
        stmt = (
            select(Budget)
            .options(selectinload(Budget.categories).selectinload(BudgetCategory.subcategories))
            .where(Budget.id == budget_id, Budget.user_id == self.user_id)
        )
        return self.session.scalar(stmt)

    def list_all(self) -> list[Budget]:
        stmt = (
            select(Budget)
            .options(selectinload(Budget.categories).selectinload(BudgetCategory.subcategories))
            .where(Budget.user_id == self.user_id)
            .order_by(Budget.created_at.desc(), Budget.id.desc())
        )
        return self.session.scalars(stmt).all()

    def get(self, budget_id: int) -> Budget:
        budget = self._load(budget_id)
        if not budget:
            raise NotFound("Budget not found")
        return budget

    @staticmethod
    def _ensure_unique_name(budget: Budget, name: str, *, ignore_id: Optional[int] = None) -> None:
        for category in budget.categories:
            if category.name == name and (ignore_id is None or category.id != ignore_id):
                raise InvalidInput(f"Category '{name}' already exists in this budget")

    @staticmethod
    def _build_category(data: BudgetCategoryIn) -> BudgetCategory:
        category = BudgetCategory(
            name=data.name.strip(),
            limit_cents=data.limit_cents,
            spent_cents=0,
            color=data.color,
            group=data.group,
            alert_threshold=data.alert_threshold,
            is_subcategory=False,
        )
        for sub in data.subcategories:
            category.subcategories.append(
                BudgetCategory(
                    name=sub.name.strip(),
                    limit_cents=sub.limit_cents,
                    spent_cents=0,
                    color=sub.color or data.color,
                    group=data.group,
                    alert_threshold=sub.alert_threshold,
                    is_subcategory=True,
                )
            )
        return category

    def _resolve_previous(
        self, previous_budget_id: Optional[int], budget_id: Optional[int] = None
    ) -> Optional[int]:
        if previous_budget_id is None:
            return None
        if budget_id is not None and previous_budget_id == budget_id:
            raise InvalidInput("A budget cannot be its own previous budget")
        self.get(previous_budget_id)
        return previous_budget_id

    def new_budget(
        self,
        name: str,
        total_budget_cents: int,
        period: BudgetPeriod,
        start_date: date,
    ) -> Budget:
        return Budget(
            user_id=self.user_id,
            name=name.strip(),
            total_budget_cents=total_budget_cents,
            period=period,
            start_date=start_date,
            end_date=advance_period(start_date, period),
        )

    def create(self, data: BudgetIn) -> Budget:
        budget = self.new_budget(
            data.name, data.total_budget_cents, data.period, data.start_date
        )
        budget.notes = data.notes
        budget.previous_budget_id = self._resolve_previous(data.previous_budget_id)
        budget.notifications_enabled = data.notifications.enabled
        budget.email_notifications = data.notifications.email_notifications
        budget.weekly_digest = data.notifications.weekly_digest
        budget.threshold_alerts = data.notifications.threshold_alerts
        for category_in in data.categories:
            self._ensure_unique_name(budget, category_in.name.strip())
            budget.categories.append(self._build_category(category_in))

        self.session.add(budget)
        self.session.commit()
        self.session.refresh(budget)
        logger.info(
            f"budget_created: id={budget.id} period={budget.period.value} "
            f"categories={len(budget.categories)}"
        )
        return budget

    def update(self, budget_id: int, data: BudgetUpdate) -> Budget:
        budget = self.get(budget_id)
        changes = data.model_dump(exclude_unset=True)
        nullable = {"notes", "previous_budget_id"}
        for field, value in changes.items():
            if value is None and field not in nullable:
                raise InvalidInput(f"{field} cannot be empty")
        if "name" in changes:
            changes["name"] = changes["name"].strip()
        if "previous_budget_id" in changes:
            changes["previous_budget_id"] = self._resolve_previous(
                changes["previous_budget_id"], budget.id
            )
        for field, value in changes.items():
            setattr(budget, field, value)
        if "period" in changes or "start_date" in changes:
            budget.end_date = advance_period(budget.start_date, budget.period)
        self.session.commit()
        self.session.refresh(budget)
        return budget

    def delete(self, budget_id: int) -> None:
        budget = self.get(budget_id)
        self.session.execute(
            update(Budget)
            .where(Budget.previous_budget_id == budget.id)
            .values(previous_budget_id=None)
        )
        self.session.delete(budget)
        self.session.commit()
        logger.info(f"budget_deleted: id={budget_id}")

    def add_category(self, budget_id: int, data: BudgetCategoryIn) -> Budget:
        budget = self.get(budget_id)
        self._ensure_unique_name(budget, data.name.strip())
        budget.categories.append(self._build_category(data))
        self.session.commit()
        self.session.refresh(budget)
        return budget

    def _category(self, budget: Budget, category_id: int) -> BudgetCategory:
        category = budget.category_by_id(category_id)
        if not category:
            raise NotFound("Category not found")
        return category

    def update_category(
        self, budget_id: int, category_id: int, data: BudgetCategoryUpdate
    ) -> Budget:
        budget = self.get(budget_id)
        category = self._category(budget, category_id)
        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            if value is None:
                raise InvalidInput(f"{field} cannot be empty")
        if "name" in changes:
            changes["name"] = changes["name"].strip()
            if not category.is_subcategory:
                self._ensure_unique_name(budget, changes["name"], ignore_id=category.id)
        for field, value in changes.items():
            setattr(category, field, value)
        self.session.commit()
        self.session.refresh(budget)
        return budget

    def delete_category(self, budget_id: int, category_id: int) -> Budget:
        budget = self.get(budget_id)
        category = self._category(budget, category_id)
        if category in budget.categories:
            budget.categories.remove(category)
        else:
            for parent in budget.categories:
                if category in parent.subcategories:
                    parent.subcategories.remove(category)
                    break
        self.session.commit()
        self.session.refresh(budget)
        return budget

    def track_spending(self, data: TrackSpendingIn) -> Budget:
        budget = self.get(data.budget_id)
        category = self._category(budget, data.category_id)
        track_spending(category, data.amount_cents)
        self.session.commit()
        self.session.refresh(budget)
        return budget

    def progress(self, budget_id: int) -> BudgetProgress:
        return compute_progress(self.get(budget_id))

    def sync_from_transactions(self, budget_id: int) -> tuple[Budget, list[Alert]]:
        budget = self.get(budget_id)
        transactions = self.transactions.find_transactions(
            budget.start_date, budget.end_date, TransactionType.expense
        )
        result = resync(budget, transactions)
        self.session.commit()
        self.session.refresh(budget)
        logger.info(
            f"budget_synced: id={budget.id} transactions={len(transactions)} "
            f"matched={result.matched} dropped={result.dropped} "
            f"alerts={len(result.alerts)}"
        )
        return budget, result.alerts

    def compare(self, budget_a_id: int, budget_b_id: int) -> BudgetComparison:
        budget_a = self._load(budget_a_id)
        budget_b = self._load(budget_b_id)
        if not budget_a or not budget_b:
            raise NotFound("One or both budgets not found")
        return compare_budgets(budget_a, budget_b)

    def insights(self, budget_id: int) -> BudgetInsights:
        budget = self.get(budget_id)
        transactions = self.transactions.find_transactions(
            budget.start_date, budget.end_date
        )
        previous = None
        if budget.previous_budget_id is not None:
            previous = self._load(budget.previous_budget_id)
        progress = compute_progress(budget)
        insights = generate_insights(
            budget, progress, transactions, previous, now=self.clock()
        )
        return BudgetInsights(
            name=budget.name,
            period=budget.period,
            start_date=budget.start_date,
            end_date=budget.end_date,
            total_budget_cents=budget.total_budget_cents,
            total_spent_cents=progress.total_spent_cents,
            total_remaining_cents=progress.total_remaining_cents,
            percentage=progress.percentage,
            insights=insights,
        )


def resync_active_budgets(session: Session, on_date: Optional[date] = None) -> int:
    """Re-derive spending for every budget whose window contains ``on_date``."""
    on_date = on_date or local_today()
    rows = session.execute(
        select(Budget.id, Budget.user_id)
        .where(Budget.start_date <= on_date, Budget.end_date >= on_date)
        .order_by(Budget.id)
    ).all()
    alert_count = 0
    for row in rows:
        _, alerts = BudgetService(session, row.user_id).sync_from_transactions(row.id)
        alert_count += len(alerts)
    logger.info(
        f"resync_active_budgets: date={on_date.isoformat()} budgets={len(rows)} "
        f"alerts={alert_count}"
    )
    return len(rows)


class BudgetTemplateService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()

    def ensure_system_templates(self) -> int:
        existing = self.session.scalar(
            select(func.count(BudgetTemplate.id)).where(
                BudgetTemplate.kind == TemplateKind.system
            )
        )
        if existing:
            return 0
        for seed in SYSTEM_TEMPLATES:
            template = BudgetTemplate(
                user_id=None,
                name=seed["name"],
                description=seed["description"],
                kind=TemplateKind.system,
                template_type=seed["template_type"],
                is_public=True,
            )
            for name, percentage, group, color, subs in seed["categories"]:
                category = TemplateCategory(
                    name=name, percentage=percentage, group=group, color=color
                )
                for sub_name, sub_percentage, sub_color in subs:
                    category.subcategories.append(
                        TemplateSubcategory(
                            name=sub_name, percentage=sub_percentage, color=sub_color
                        )
                    )
                template.categories.append(category)
            self.session.add(template)
        self.session.commit()
        logger.info(f"system_templates_seeded: count={len(SYSTEM_TEMPLATES)}")
        return len(SYSTEM_TEMPLATES)

    def _visible(self):
        return (
            select(BudgetTemplate)
            .options(
                selectinload(BudgetTemplate.categories).selectinload(
                    TemplateCategory.subcategories
                )
            )
            .where(
                or_(
                    BudgetTemplate.kind == TemplateKind.system,
                    BudgetTemplate.user_id == self.user_id,
                )
            )
        )

    def list_visible(self) -> list[BudgetTemplate]:
        self.ensure_system_templates()
        stmt = self._visible().order_by(
            BudgetTemplate.created_at.desc(), BudgetTemplate.id.desc()
        )
        return self.session.scalars(stmt).all()

    def get(self, template_id: int) -> BudgetTemplate:
        self.ensure_system_templates()
        template = self.session.scalar(
            self._visible().where(BudgetTemplate.id == template_id)
        )
        if not template:
            raise NotFound("Template not found")
        return template

    def _owned_custom(self, template_id: int) -> BudgetTemplate:
        template = self.session.get(BudgetTemplate, template_id)
        if (
            not template
            or template.kind != TemplateKind.custom
            or template.user_id != self.user_id
        ):
            raise NotFound("Template not found or cannot be modified")
        return template

    @staticmethod
    def _template_categories(
        categories_in: list[TemplateCategoryIn],
    ) -> list[TemplateCategory]:
        seen: set[str] = set()
        categories: list[TemplateCategory] = []
        for item in categories_in:
            name = item.name.strip()
            if name in seen:
                raise InvalidInput(f"Category '{name}' appears more than once")
            seen.add(name)
            category = TemplateCategory(
                name=name, percentage=item.percentage, group=item.group, color=item.color
            )
            for sub in item.subcategories:
                category.subcategories.append(
                    TemplateSubcategory(
                        name=sub.name.strip(), percentage=sub.percentage, color=sub.color
                    )
                )
            categories.append(category)
        return categories

    def create(self, data: BudgetTemplateIn) -> BudgetTemplate:
        template = BudgetTemplate(
            user_id=self.user_id,
            name=data.name.strip(),
            description=data.description,
            kind=TemplateKind.custom,
        )
        template.categories.extend(self._template_categories(data.categories))
        self.session.add(template)
        self.session.commit()
        self.session.refresh(template)
        return template

    def update(self, template_id: int, data: BudgetTemplateUpdate) -> BudgetTemplate:
        template = self._owned_custom(template_id)
        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            if value is None and field != "description":
                raise InvalidInput(f"{field} cannot be empty")
        for field, value in changes.items():
            if field != "categories":
                setattr(template, field, value)
        if "categories" in changes:
            template.categories = self._template_categories(data.categories)
        self.session.commit()
        self.session.refresh(template)
        return template

    def delete(self, template_id: int) -> None:
        template = self._owned_custom(template_id)
        self.session.delete(template)
        self.session.commit()

    def create_budget(self, template_id: int, data: BudgetFromTemplateIn) -> Budget:
        template = self.get(template_id)
        budgets = BudgetService(self.session, self.user_id)
        budget = budgets.new_budget(
            data.name, data.total_budget_cents, data.period, data.start_date
        )
        budget.template_type = template.template_type
        budget.categories.extend(instantiate(template, data.total_budget_cents))
        self.session.add(budget)
        self.session.commit()
        self.session.refresh(budget)
        logger.info(
            f"budget_from_template: template={template.id} budget={budget.id} "
            f"categories={len(budget.categories)}"
        )
        return budget

    def save_budget_as_template(
        self, budget_id: int, data: SaveAsTemplateIn
    ) -> BudgetTemplate:
        budget = BudgetService(self.session, self.user_id).get(budget_id)
        categories = derive_template(budget)
        oversized = [c.name for c in categories if c.percentage > 100]
        if oversized:
            raise InvalidInput(
                f"Category limits exceed the budget total: {', '.join(oversized)}"
            )
        template = BudgetTemplate(
            user_id=self.user_id,
            name=data.name or f"Template from {budget.name}",
            description=data.description or f"Created from budget: {budget.name}",
            kind=TemplateKind.custom,
        )
        template.categories.extend(categories)
        self.session.add(template)
        self.session.commit()
        self.session.refresh(template)
        return template


GROUPING_FORMATS = {
    "daily": "%Y-%m-%d",
    "weekly": "%Y-W%W",
    "monthly": "%Y-%m",
}


def calculate_trend(values: list[int]) -> str:
    if len(values) < 2:
        return "stable"
    current, previous = values[-1], values[-2]
    if previous == 0:
        if current > 0:
            return "increasing"
        if current < 0:
            return "decreasing"
        return "stable"
    change = (current - previous) / abs(previous) * 100
    if change > 5:
        return "increasing"
    if change < -5:
        return "decreasing"
    return "stable"


class ReportService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()
        self.transactions = TransactionService(session, self.user_id)

    def _totals_by_bucket(
        self, fmt: str, start: date, end: date
    ) -> dict[str, dict[TransactionType, tuple[int, int]]]:
        bucket = func.strftime(fmt, Transaction.date).label("bucket")
        stmt = (
            select(
                bucket,
                Transaction.type,
                func.coalesce(func.sum(Transaction.amount_cents), 0).label("total"),
                func.count(Transaction.id).label("count"),
            )
            .where(
                Transaction.user_id == self.user_id,
                Transaction.date.between(start, end),
            )
            .group_by(bucket, Transaction.type)
            .order_by(bucket)
        )
        totals: dict[str, dict[TransactionType, tuple[int, int]]] = {}
        for row in self.session.execute(stmt):
            totals.setdefault(row.bucket, {})[row.type] = (
                int(row.total or 0),
                int(row.count or 0),
            )
        return totals

    def income_expense(self, period: Period, grouping: str = "monthly") -> dict[str, object]:
        fmt = GROUPING_FORMATS.get(grouping)
        if fmt is None:
            raise InvalidInput(f"Unsupported grouping: {grouping}")
        totals = self._totals_by_bucket(fmt, period.start, period.end)
        data = []
        for bucket, by_type in totals.items():
            income = by_type.get(TransactionType.income, (0, 0))[0]
            expense = abs(by_type.get(TransactionType.expense, (0, 0))[0])
            data.append(
                {
                    "period": bucket,
                    "income_cents": income,
                    "expense_cents": expense,
                    "savings_cents": income - expense,
                }
            )
        return {
            "start": period.start,
            "end": period.end,
            "grouping": grouping,
            "data": data,
        }

    def _budget_category_names(self) -> list[str]:
        stmt = (
            select(BudgetCategory.name)
            .join(Budget, BudgetCategory.budget_id == Budget.id)
            .where(Budget.user_id == self.user_id)
            .order_by(Budget.id.asc(), BudgetCategory.position.asc())
        )
        names: dict[str, None] = {}
        for name in self.session.scalars(stmt):
            names.setdefault(name, None)
        return list(names)

    def category_breakdown(self, period: Period) -> dict[str, object]:
        names = self._budget_category_names()
        totals: dict[str, int] = {name: 0 for name in names}
        totals.setdefault(OTHER_CATEGORY, 0)
        for txn in self.transactions.find_transactions(
            period.start, period.end, TransactionType.expense
        ):
            totals[match_for_report(txn.description, names)] += abs(txn.amount_cents)
        data = sorted(
            (
                {"category": name, "amount_cents": amount}
                for name, amount in totals.items()
            ),
            key=lambda row: row["amount_cents"],
            reverse=True,
        )
        return {
            "start": period.start,
            "end": period.end,
            "total_spent_cents": sum(totals.values()),
            "data": data,
        }

    def savings(self, year: int) -> dict[str, object]:
        totals = self._totals_by_bucket("%m", date(year, 1, 1), date(year, 12, 31))
        data = []
        for month in range(1, 13):
            by_type = totals.get(f"{month:02d}", {})
            income = by_type.get(TransactionType.income, (0, 0))[0]
            expense = abs(by_type.get(TransactionType.expense, (0, 0))[0])
            data.append(
                {
                    "month": month,
                    "month_name": calendar.month_name[month],
                    "income_cents": income,
                    "expense_cents": expense,
                    "savings_cents": income - expense,
                }
            )
        total_income = sum(row["income_cents"] for row in data)
        total_expense = sum(row["expense_cents"] for row in data)
        total_savings = total_income - total_expense
        return {
            "year": year,
            "total_income_cents": total_income,
            "total_expense_cents": total_expense,
            "total_savings_cents": total_savings,
            "average_monthly_savings_cents": round(total_savings / 12),
            "data": data,
        }

    def trends(self, months: int = 6, *, today: Optional[date] = None) -> dict[str, object]:
        period = trailing_months(months, today=today)
        totals = self._totals_by_bucket("%Y-%m", period.start, period.end)
        data = []
        for key in month_keys(period):
            by_type = totals.get(key, {})
            income, income_count = by_type.get(TransactionType.income, (0, 0))
            expense, expense_count = by_type.get(TransactionType.expense, (0, 0))
            data.append(
                {
                    "month": key,
                    "income_cents": income,
                    "expense_cents": abs(expense),
                    "transactions": income_count + expense_count,
                }
            )
        return {
            "start": period.start,
            "end": period.end,
            "months": months,
            "trends": {
                "income": calculate_trend([row["income_cents"] for row in data]),
                "expense": calculate_trend([row["expense_cents"] for row in data]),
                "savings": calculate_trend(
                    [row["income_cents"] - row["expense_cents"] for row in data]
                ),
            },
            "data": data,
        }

    def export_csv(self, period: Period) -> str:
        return export_transactions(
            self.transactions.find_transactions(period.start, period.end)
        )
