from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from database import Base
from errors import InvalidInput, NotFound
from models import BudgetPeriod, CategoryGroup, TemplateKind, TemplateType
from schemas import (
    BudgetCategoryIn,
    BudgetFromTemplateIn,
    BudgetIn,
    BudgetTemplateIn,
    BudgetTemplateUpdate,
    SaveAsTemplateIn,
    TemplateCategoryIn,
    TemplateSubcategoryIn,
)
from services import BudgetService, BudgetTemplateService
from system_templates import SYSTEM_TEMPLATES


def _session() -> Session:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    return Session(engine)


def _custom(name: str = "Household") -> BudgetTemplateIn:
    return BudgetTemplateIn(
        name=name,
        description="Shared flat",
        categories=[
            TemplateCategoryIn(
                name="Home",
                percentage=60,
                group=CategoryGroup.essential,
                color="#795548",
                subcategories=[TemplateSubcategoryIn(name="Rent", percentage=75)],
            ),
            TemplateCategoryIn(name="Fun", percentage=40, group=CategoryGroup.non_essential),
        ],
    )


def test_system_templates_are_seeded_once() -> None:
    with _session() as session:
        service = BudgetTemplateService(session)

        assert service.ensure_system_templates() == len(SYSTEM_TEMPLATES)
        assert service.ensure_system_templates() == 0

        templates = service.list_visible()
        system = [t for t in templates if t.kind == TemplateKind.system]
        assert len(system) == 3
        assert {t.template_type for t in system} == {
            TemplateType.fifty_thirty_twenty,
            TemplateType.zero_based,
            TemplateType.envelope,
        }
        assert all(t.user_id is None and t.is_public for t in system)


def test_custom_templates_are_private_to_their_owner() -> None:
    with _session() as session:
        mine = BudgetTemplateService(session, user_id=1)
        theirs = BudgetTemplateService(session, user_id=2)

        template = mine.create(_custom())
        assert template.kind == TemplateKind.custom
        assert [c.name for c in template.categories] == ["Home", "Fun"]
        assert template.categories[0].subcategories[0].color is None

        assert template.id in {t.id for t in mine.list_visible()}
        assert template.id not in {t.id for t in theirs.list_visible()}
        with pytest.raises(NotFound):
            theirs.get(template.id)
        with pytest.raises(NotFound):
            theirs.delete(template.id)


def test_system_templates_cannot_be_modified() -> None:
    with _session() as session:
        service = BudgetTemplateService(session)
        service.ensure_system_templates()
        system = service.list_visible()[0]

        with pytest.raises(NotFound, match="cannot be modified"):
            service.update(system.id, BudgetTemplateUpdate(name="Mine now"))
        with pytest.raises(NotFound):
            service.delete(system.id)


def test_update_replaces_categories() -> None:
    with _session() as session:
        service = BudgetTemplateService(session)
        template = service.create(_custom())

        updated = service.update(
            template.id,
            BudgetTemplateUpdate(
                description=None,
                categories=[TemplateCategoryIn(name="Everything", percentage=100)],
            ),
        )

        assert updated.name == "Household"
        assert updated.description is None
        assert [(c.name, c.percentage) for c in updated.categories] == [("Everything", 100)]

        with pytest.raises(InvalidInput):
            service.update(template.id, BudgetTemplateUpdate(name=None))


def test_duplicate_template_category_names_are_rejected() -> None:
    with _session() as session:
        service = BudgetTemplateService(session)
        with pytest.raises(InvalidInput):
            service.create(
                BudgetTemplateIn(
                    name="Twice",
                    categories=[
                        TemplateCategoryIn(name="Food", percentage=50),
                        TemplateCategoryIn(name="Food", percentage=50),
                    ],
                )
            )


def test_budget_from_system_template_scales_in_two_stages() -> None:
    with _session() as session:
        service = BudgetTemplateService(session)
        service.ensure_system_templates()
        rule = next(
            t
            for t in service.list_visible()
            if t.template_type == TemplateType.fifty_thirty_twenty
        )

        budget = service.create_budget(
            rule.id,
            BudgetFromTemplateIn(
                name="March",
                total_budget_cents=300_000,
                period=BudgetPeriod.monthly,
                start_date=date(2025, 3, 1),
            ),
        )

        assert budget.template_type == TemplateType.fifty_thirty_twenty
        assert budget.end_date == date(2025, 4, 1)
        assert [(c.name, c.limit_cents) for c in budget.categories] == [
            ("Needs", 150_000),
            ("Wants", 90_000),
            ("Savings", 60_000),
        ]
        needs = budget.categories[0]
        housing = needs.subcategories[0]
        assert housing.name == "Housing"
        assert housing.limit_cents == 37_500
        assert housing.group == CategoryGroup.essential
        assert housing.is_subcategory is True


def test_budget_from_custom_template_inherits_missing_colors() -> None:
    with _session() as session:
        service = BudgetTemplateService(session)
        template = service.create(_custom())

        budget = service.create_budget(
            template.id,
            BudgetFromTemplateIn(
                name="April", total_budget_cents=100_000, start_date=date(2025, 4, 1)
            ),
        )

        home = budget.categories[0]
        assert home.limit_cents == 60_000
        assert home.subcategories[0].limit_cents == 45_000
        assert home.subcategories[0].color == "#795548"
        assert budget.template_type == TemplateType.custom


def test_save_budget_as_template_uses_default_names() -> None:
    with _session() as session:
        budget = BudgetService(session).create(
            BudgetIn(
                name="May",
                total_budget_cents=80_000,
                start_date=date(2025, 5, 1),
                categories=[
                    BudgetCategoryIn(
                        name="Rent", limit_cents=40_000, group=CategoryGroup.essential
                    ),
                    BudgetCategoryIn(name="Fun", limit_cents=10_000),
                ],
            )
        )
        service = BudgetTemplateService(session)

        template = service.save_budget_as_template(budget.id, SaveAsTemplateIn())

        assert template.name == "Template from May"
        assert template.description == "Created from budget: May"
        assert template.kind == TemplateKind.custom
        assert [(c.name, c.percentage) for c in template.categories] == [
            ("Rent", 50.0),
            ("Fun", 12.5),
        ]

        named = service.save_budget_as_template(
            budget.id, SaveAsTemplateIn(name="Lean month")
        )
        assert named.name == "Lean month"

        with pytest.raises(NotFound):
            service.save_budget_as_template(999, SaveAsTemplateIn())


def test_save_as_template_rejects_limits_above_budget_total() -> None:
    with _session() as session:
        budget = BudgetService(session).create(
            BudgetIn(
                name="Squeezed",
                total_budget_cents=10_000,
                start_date=date(2025, 5, 1),
                categories=[
                    BudgetCategoryIn(name="Rent", limit_cents=20_000),
                    BudgetCategoryIn(name="Fun", limit_cents=1_000),
                ],
            )
        )
        service = BudgetTemplateService(session)

        with pytest.raises(InvalidInput, match="Rent"):
            service.save_budget_as_template(budget.id, SaveAsTemplateIn())

        custom = [t for t in service.list_visible() if t.kind == TemplateKind.custom]
        assert custom == []


def test_update_rejects_null_categories() -> None:
    with _session() as session:
        service = BudgetTemplateService(session)
        template = service.create(_custom())

        with pytest.raises(InvalidInput, match="categories cannot be empty"):
            service.update(template.id, BudgetTemplateUpdate(categories=None))

        assert [c.name for c in service.get(template.id).categories] == ["Home", "Fun"]
