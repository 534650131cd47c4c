import logging
from typing import Literal, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from csv_utils import export_filename
from database import SessionLocal, init_db, session_scope
from errors import InvalidInput, NotFound
from periods import Period, local_today, resolve_period
from scheduler import SchedulerManager
from schemas import (
    BudgetCategoryIn,
    BudgetCategoryUpdate,
    BudgetFromTemplateIn,
    BudgetIn,
    BudgetOut,
    BudgetTemplateIn,
    BudgetTemplateOut,
    BudgetTemplateUpdate,
    BudgetUpdate,
    SaveAsTemplateIn,
    TrackSpendingIn,
    TransactionIn,
    TransactionOut,
    TransactionQuery,
)
from services import (
    BudgetService,
    BudgetTemplateService,
    ReportService,
    TransactionService,
)

app = FastAPI(title="Spendwatch")


def _load_app_version() -> str:
    try:
        import tomllib
    except Exception:
        return "unknown"
    try:
        with open("pyproject.toml", "rb") as f:
            data = tomllib.load(f)
        return str(data.get("project", {}).get("version", "unknown"))
    except Exception:
        return "unknown"


APP_VERSION = _load_app_version()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


scheduler_manager = SchedulerManager()


@app.on_event("startup")
def startup_event():
    init_db()
    with session_scope() as session:
        BudgetTemplateService(session).ensure_system_templates()
    scheduler_manager.start()


@app.on_event("shutdown")
def shutdown_event():
    scheduler_manager.stop()


def period_from_request(request: Request) -> Period:
    start = request.query_params.get("start")
    end = request.query_params.get("end")
    try:
        return resolve_period(start, end)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/api/health")
def health():
    return {"status": "ok", "version": APP_VERSION}


@app.get("/api/transactions", response_model=list[TransactionOut])
def list_transactions(
    limit: int = 20,
    order: Literal["asc", "desc"] = "desc",
    type: Optional[str] = None,
    db: Session = Depends(get_db),
):
    try:
        query = TransactionQuery(limit=limit, order=order, type=type)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return TransactionService(db).list(query)


@app.post("/api/transactions", response_model=TransactionOut, status_code=201)
def create_transaction(data: TransactionIn, db: Session = Depends(get_db)):
    return TransactionService(db).create(data)


@app.delete("/api/transactions/{transaction_id}")
def delete_transaction(transaction_id: int, db: Session = Depends(get_db)):
    try:
        TransactionService(db).delete(transaction_id)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"message": "Transaction deleted successfully"}


@app.post("/api/budgets", response_model=BudgetOut, status_code=201)
def create_budget(data: BudgetIn, db: Session = Depends(get_db)):
    try:
        return BudgetService(db).create(data)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except InvalidInput as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/api/budgets", response_model=list[BudgetOut])
def list_budgets(db: Session = Depends(get_db)):
    return BudgetService(db).list_all()


@app.get("/api/budgets/compare")
def compare_budgets(budget_a: int, budget_b: int, db: Session = Depends(get_db)):
    try:
        return BudgetService(db).compare(budget_a, budget_b)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.post("/api/budgets/track", response_model=BudgetOut)
def track_spending(data: TrackSpendingIn, db: Session = Depends(get_db)):
    try:
        return BudgetService(db).track_spending(data)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.get("/api/budgets/{budget_id}", response_model=BudgetOut)
def get_budget(budget_id: int, db: Session = Depends(get_db)):
    try:
        return BudgetService(db).get(budget_id)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.put("/api/budgets/{budget_id}", response_model=BudgetOut)
def update_budget(budget_id: int, data: BudgetUpdate, db: Session = Depends(get_db)):
    try:
        return BudgetService(db).update(budget_id, data)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except InvalidInput as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.delete("/api/budgets/{budget_id}")
def delete_budget(budget_id: int, db: Session = Depends(get_db)):
    try:
        BudgetService(db).delete(budget_id)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"message": "Budget deleted successfully"}


@app.post(
    "/api/budgets/{budget_id}/categories", response_model=BudgetOut, status_code=201
)
def add_category(budget_id: int, data: BudgetCategoryIn, db: Session = Depends(get_db)):
    try:
        return BudgetService(db).add_category(budget_id, data)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except InvalidInput as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.put("/api/budgets/{budget_id}/categories/{category_id}", response_model=BudgetOut)
def update_category(
    budget_id: int,
    category_id: int,
    data: BudgetCategoryUpdate,
    db: Session = Depends(get_db),
):
    try:
        return BudgetService(db).update_category(budget_id, category_id, data)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except InvalidInput as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.delete(
    "/api/budgets/{budget_id}/categories/{category_id}", response_model=BudgetOut
)
def delete_category(budget_id: int, category_id: int, db: Session = Depends(get_db)):
    try:
        return BudgetService(db).delete_category(budget_id, category_id)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.get("/api/budgets/{budget_id}/progress")
def budget_progress(budget_id: int, db: Session = Depends(get_db)):
    try:
        return BudgetService(db).progress(budget_id)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.post("/api/budgets/{budget_id}/sync")
def sync_budget(budget_id: int, db: Session = Depends(get_db)):
    try:
        budget, alerts = BudgetService(db).sync_from_transactions(budget_id)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    if alerts:
        logging.info(
            f"threshold_alerts: budget={budget.id} "
            f"categories={[alert.category for alert in alerts]}"
        )
    return {"budget": BudgetOut.model_validate(budget), "alerts": alerts}


@app.get("/api/budgets/{budget_id}/insights")
def budget_insights(budget_id: int, db: Session = Depends(get_db)):
    try:
        return BudgetService(db).insights(budget_id)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.get("/api/budget-templates", response_model=list[BudgetTemplateOut])
def list_templates(db: Session = Depends(get_db)):
    return BudgetTemplateService(db).list_visible()


@app.post("/api/budget-templates", response_model=BudgetTemplateOut, status_code=201)
def create_template(data: BudgetTemplateIn, db: Session = Depends(get_db)):
    try:
        return BudgetTemplateService(db).create(data)
    except InvalidInput as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.post(
    "/api/budget-templates/from-budget/{budget_id}",
    response_model=BudgetTemplateOut,
    status_code=201,
)
def save_budget_as_template(
    budget_id: int, data: SaveAsTemplateIn, db: Session = Depends(get_db)
):
    try:
        return BudgetTemplateService(db).save_budget_as_template(budget_id, data)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except InvalidInput as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/api/budget-templates/{template_id}", response_model=BudgetTemplateOut)
def get_template(template_id: int, db: Session = Depends(get_db)):
    try:
        return BudgetTemplateService(db).get(template_id)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.put("/api/budget-templates/{template_id}", response_model=BudgetTemplateOut)
def update_template(
    template_id: int, data: BudgetTemplateUpdate, db: Session = Depends(get_db)
):
    try:
        return BudgetTemplateService(db).update(template_id, data)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except InvalidInput as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.delete("/api/budget-templates/{template_id}")
def delete_template(template_id: int, db: Session = Depends(get_db)):
    try:
        BudgetTemplateService(db).delete(template_id)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"message": "Template deleted successfully"}


@app.post(
    "/api/budget-templates/{template_id}/create-budget",
    response_model=BudgetOut,
    status_code=201,
)
def create_budget_from_template(
    template_id: int, data: BudgetFromTemplateIn, db: Session = Depends(get_db)
):
    try:
        return BudgetTemplateService(db).create_budget(template_id, data)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.get("/api/reports/income-expense")
def income_expense_report(
    request: Request,
    grouping: Literal["daily", "weekly", "monthly"] = "monthly",
    db: Session = Depends(get_db),
):
    period = period_from_request(request)
    return ReportService(db).income_expense(period, grouping)


@app.get("/api/reports/categories")
def category_report(request: Request, db: Session = Depends(get_db)):
    period = period_from_request(request)
    return ReportService(db).category_breakdown(period)


@app.get("/api/reports/savings")
def savings_report(
    year: Optional[int] = Query(default=None, ge=1, le=9999),
    db: Session = Depends(get_db),
):
    return ReportService(db).savings(year or local_today().year)


@app.get("/api/reports/trends")
def trends_report(months: int = 6, db: Session = Depends(get_db)):
    try:
        return ReportService(db).trends(months)
    except InvalidInput as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/api/reports/export/csv")
def export_csv(request: Request, db: Session = Depends(get_db)):
    period = period_from_request(request)
    content = ReportService(db).export_csv(period)
    logging.info(
        f"csv_export: start={period.start.isoformat()} end={period.end.isoformat()} "
        f"bytes={len(content)}"
    )
    return Response(
        content=content,
        media_type="text/csv",
        headers={
            "Content-Disposition": (
                f"attachment; filename={export_filename(period.start, period.end)}"
            )
        },
    )


def main():
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    main()
