from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from models import (
    DEFAULT_ALERT_THRESHOLD,
    DEFAULT_CATEGORY_COLOR,
    BudgetPeriod,
    CategoryGroup,
    TemplateKind,
    TemplateType,
    TransactionType,
)


class BudgetSubcategoryIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    limit_cents: int = Field(..., ge=0)
    color: Optional[str] = Field(default=None, max_length=9)
    alert_threshold: int = Field(default=DEFAULT_ALERT_THRESHOLD, ge=0, le=100)


class BudgetCategoryIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    limit_cents: int = Field(..., ge=0)
    color: str = Field(default=DEFAULT_CATEGORY_COLOR, max_length=9)
    group: CategoryGroup = CategoryGroup.other
    alert_threshold: int = Field(default=DEFAULT_ALERT_THRESHOLD, ge=0, le=100)
    subcategories: list[BudgetSubcategoryIn] = Field(default_factory=list)


class BudgetCategoryUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    limit_cents: Optional[int] = Field(default=None, ge=0)
    color: Optional[str] = Field(default=None, max_length=9)
    group: Optional[CategoryGroup] = None
    alert_threshold: Optional[int] = Field(default=None, ge=0, le=100)


class NotificationSettingsIn(BaseModel):
    enabled: bool = True
    email_notifications: bool = False
    weekly_digest: bool = False
    threshold_alerts: bool = True


class BudgetIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=120)
    total_budget_cents: int = Field(..., ge=0)
    period: BudgetPeriod = BudgetPeriod.monthly
    start_date: date
    categories: list[BudgetCategoryIn] = Field(default_factory=list)
    notes: Optional[str] = None
    previous_budget_id: Optional[int] = None
    notifications: NotificationSettingsIn = Field(
        default_factory=NotificationSettingsIn
    )


class BudgetUpdate(BaseModel):
    """Fields a client may patch on a budget; anything else is rejected."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    total_budget_cents: Optional[int] = Field(default=None, ge=0)
    period: Optional[BudgetPeriod] = None
    start_date: Optional[date] = None
    notes: Optional[str] = None
    previous_budget_id: Optional[int] = None
    notifications_enabled: Optional[bool] = None
    email_notifications: Optional[bool] = None
    weekly_digest: Optional[bool] = None
    threshold_alerts: Optional[bool] = None


class TrackSpendingIn(BaseModel):
    budget_id: int
    category_id: int
    amount_cents: int = Field(..., ge=0)


class TemplateSubcategoryIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    percentage: float = Field(..., ge=0, le=100)
    color: Optional[str] = Field(default=None, max_length=9)


class TemplateCategoryIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    percentage: float = Field(..., ge=0, le=100)
    group: CategoryGroup = CategoryGroup.other
    color: str = Field(default=DEFAULT_CATEGORY_COLOR, max_length=9)
    subcategories: list[TemplateSubcategoryIn] = Field(default_factory=list)


class BudgetTemplateIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=120)
    description: Optional[str] = None
    categories: list[TemplateCategoryIn] = Field(default_factory=list)


class BudgetTemplateUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = None
    is_public: Optional[bool] = None
    categories: Optional[list[TemplateCategoryIn]] = None


class BudgetFromTemplateIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=120)
    total_budget_cents: int = Field(..., ge=0)
    period: BudgetPeriod = BudgetPeriod.monthly
    start_date: date


class SaveAsTemplateIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = None


class TransactionIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(..., min_length=1, max_length=200)
    # Sign is normalized from ``type`` when the transaction is stored.
    amount_cents: int
    type: TransactionType
    date: date


class TransactionQuery(BaseModel):
    limit: int = Field(default=20, ge=1, le=500)
    order: Literal["asc", "desc"] = "desc"
    type: Optional[TransactionType] = None


class BudgetCategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    limit_cents: int
    spent_cents: int
    color: str
    group: CategoryGroup
    alert_threshold: int
    is_subcategory: bool
    subcategories: list["BudgetCategoryOut"] = Field(default_factory=list)


class BudgetOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    total_budget_cents: int
    period: BudgetPeriod
    start_date: date
    end_date: date
    notes: Optional[str]
    notifications_enabled: bool
    email_notifications: bool
    weekly_digest: bool
    threshold_alerts: bool
    previous_budget_id: Optional[int]
    template_type: TemplateType
    categories: list[BudgetCategoryOut]
    created_at: datetime
    updated_at: datetime


class TemplateSubcategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    percentage: float
    color: Optional[str]


class TemplateCategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    percentage: float
    group: CategoryGroup
    color: str
    subcategories: list[TemplateSubcategoryOut] = Field(default_factory=list)


class BudgetTemplateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str]
    kind: TemplateKind
    template_type: TemplateType
    is_public: bool
    categories: list[TemplateCategoryOut]


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    description: str
    amount_cents: int
    type: TransactionType
    date: date
