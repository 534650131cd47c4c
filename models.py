from datetime import date, datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base


class TransactionType(str, Enum):
    income = "income"
    expense = "expense"


class BudgetPeriod(str, Enum):
    weekly = "weekly"
    monthly = "monthly"
    yearly = "yearly"


class CategoryGroup(str, Enum):
    essential = "Essential"
    non_essential = "Non-essential"
    savings = "Savings"
    income = "Income"
    other = "Other"


class TemplateKind(str, Enum):
    system = "system"
    custom = "custom"


class TemplateType(str, Enum):
    custom = "custom"
    fifty_thirty_twenty = "50-30-20"
    zero_based = "zero-based"
    envelope = "envelope"


def _values_enum(enum_cls: type[Enum], name: str) -> SAEnum:
    return SAEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
    )


DEFAULT_CATEGORY_COLOR = "#3f51b5"
DEFAULT_ALERT_THRESHOLD = 80


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class Budget(Base, TimestampMixin):
    __tablename__ = "budgets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    total_budget_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    period: Mapped[BudgetPeriod] = mapped_column(
        _values_enum(BudgetPeriod, "budgetperiod"),
        nullable=False,
        default=BudgetPeriod.monthly,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    notifications_enabled: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    email_notifications: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    weekly_digest: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    threshold_alerts: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    previous_budget_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("budgets.id", ondelete="SET NULL")
    )
    template_type: Mapped[TemplateType] = mapped_column(
        _values_enum(TemplateType, "templatetype"),
        nullable=False,
        default=TemplateType.custom,
    )

    categories: Mapped[list["BudgetCategory"]] = relationship(
        "BudgetCategory",
        order_by="BudgetCategory.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    previous_budget: Mapped[Optional["Budget"]] = relationship(
        "Budget", remote_side=[id]
    )

    __table_args__ = (
        CheckConstraint("total_budget_cents >= 0", name="ck_budget_total_positive"),
        CheckConstraint("end_date >= start_date", name="ck_budget_window_ordered"),
        Index("ix_budgets_user_start", "user_id", "start_date"),
    )

    def category_by_id(self, category_id: int) -> Optional["BudgetCategory"]:
        index: dict[int, BudgetCategory] = {}
        for category in self.categories:
            index[category.id] = category
            for sub in category.subcategories:
                index[sub.id] = sub
        return index.get(category_id)

    def category_by_name(self, name: str) -> Optional["BudgetCategory"]:
        for category in self.categories:
            if category.name == name:
                return category
        return None


class BudgetCategory(Base):
    """A named slice of a budget.

    Top-level rows hang off ``budget_id``; subcategories hang off
    ``parent_id`` and leave ``budget_id`` empty.
    """

    __tablename__ = "budget_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    budget_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("budgets.id", ondelete="CASCADE")
    )
    parent_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("budget_categories.id", ondelete="CASCADE")
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    limit_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    spent_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    color: Mapped[str] = mapped_column(
        String(9), nullable=False, default=DEFAULT_CATEGORY_COLOR
    )
    group: Mapped[CategoryGroup] = mapped_column(
        _values_enum(CategoryGroup, "categorygroup"),
        nullable=False,
        default=CategoryGroup.other,
    )
    alert_threshold: Mapped[int] = mapped_column(
        Integer, nullable=False, default=DEFAULT_ALERT_THRESHOLD
    )
    is_subcategory: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    subcategories: Mapped[list["BudgetCategory"]] = relationship(
        "BudgetCategory",
        order_by="BudgetCategory.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("limit_cents >= 0", name="ck_budget_category_limit_positive"),
        CheckConstraint("spent_cents >= 0", name="ck_budget_category_spent_positive"),
        CheckConstraint(
            "alert_threshold >= 0 AND alert_threshold <= 100",
            name="ck_budget_category_threshold_range",
        ),
        CheckConstraint(
            "(budget_id IS NULL) <> (parent_id IS NULL)",
            name="ck_budget_category_single_owner",
        ),
        Index("ix_budget_categories_budget", "budget_id", "position"),
        Index("ix_budget_categories_parent", "parent_id", "position"),
    )


class BudgetTemplate(Base, TimestampMixin):
    __tablename__ = "budget_templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[Optional[int]] = mapped_column(Integer)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    kind: Mapped[TemplateKind] = mapped_column(
        _values_enum(TemplateKind, "templatekind"),
        nullable=False,
        default=TemplateKind.custom,
    )
    template_type: Mapped[TemplateType] = mapped_column(
        _values_enum(TemplateType, "templatetype"),
        nullable=False,
        default=TemplateType.custom,
    )
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    categories: Mapped[list["TemplateCategory"]] = relationship(
        "TemplateCategory",
        order_by="TemplateCategory.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint(
            "(kind = 'system' AND user_id IS NULL) OR (kind = 'custom' AND user_id IS NOT NULL)",
            name="ck_budget_template_owner",
        ),
        Index("ix_budget_templates_user", "user_id"),
    )


class TemplateCategory(Base):
    __tablename__ = "template_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    template_id: Mapped[int] = mapped_column(
        ForeignKey("budget_templates.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    percentage: Mapped[float] = mapped_column(Float, nullable=False)
    group: Mapped[CategoryGroup] = mapped_column(
        _values_enum(CategoryGroup, "categorygroup"),
        nullable=False,
        default=CategoryGroup.other,
    )
    color: Mapped[str] = mapped_column(
        String(9), nullable=False, default=DEFAULT_CATEGORY_COLOR
    )

    subcategories: Mapped[list["TemplateSubcategory"]] = relationship(
        "TemplateSubcategory",
        order_by="TemplateSubcategory.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint(
            "percentage >= 0 AND percentage <= 100",
            name="ck_template_category_percentage_range",
        ),
    )


class TemplateSubcategory(Base):
    __tablename__ = "template_subcategories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    template_category_id: Mapped[int] = mapped_column(
        ForeignKey("template_categories.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    percentage: Mapped[float] = mapped_column(Float, nullable=False)
    color: Mapped[Optional[str]] = mapped_column(String(9))

    __table_args__ = (
        CheckConstraint(
            "percentage >= 0 AND percentage <= 100",
            name="ck_template_subcategory_percentage_range",
        ),
    )


class Transaction(Base, TimestampMixin):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    description: Mapped[str] = mapped_column(String(200), nullable=False)
    # Signed: expenses are stored negative, income positive.
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[TransactionType] = mapped_column(
        SAEnum(TransactionType), nullable=False
    )
    date: Mapped[date] = mapped_column(Date, nullable=False)

    __table_args__ = (
        Index("ix_transactions_user_date", "user_id", "date"),
        Index("ix_transactions_user_type_date", "user_id", "type", "date"),
    )
