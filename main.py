import logging
import tomllib
from datetime import datetime
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException

from config import get_settings
from models import PeriodType
from periods import (
    as_utc,
    get_budget_period_range,
    get_month_key_for_period,
    get_next_period_date,
    get_previous_period_date,
    parse_date_or_instant,
    resolve_timezone,
)
from schemas import BudgetSummaryIn, BudgetSummaryResponse, PeriodOut
from services import BudgetSummaryService, reference_instant

logging.basicConfig(level=get_settings().log_level)

app = FastAPI(title="Budget Summary")


def _load_app_version() -> str:
    path = Path(__file__).resolve().parent / "pyproject.toml"
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
        return str(data.get("project", {}).get("version", "unknown"))
    except (OSError, tomllib.TOMLDecodeError):
        return "unknown"


APP_VERSION = _load_app_version()


def parse_reference(value: str, tz: Optional[str] = None) -> datetime:
    """Reference instant from a query value: an ISO instant or a bare date."""
    try:
        parsed = parse_date_or_instant(value)
    except ValueError as exc:
        raise ValueError(f"Invalid date: {value}") from exc
    return reference_instant(parsed, tz)


@app.get("/api/health")
def health():
    return {"status": "ok", "version": APP_VERSION}


@app.get("/api/budget/period", response_model=PeriodOut)
def budget_period(
    date: str,
    period_type: PeriodType = PeriodType.monthly,
    timezone: Optional[str] = None,
):
    try:
        zone = resolve_timezone(timezone).key
        reference = parse_reference(date, zone)
        period_range = get_budget_period_range(reference, period_type, zone)
    except ValueError as exc:
        logging.warning(f"period_rejected: date={date} reason={exc}")
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return PeriodOut(
        period_type=period_type,
        timezone=zone,
        label=period_range.label,
        start=as_utc(period_range.start),
        end=as_utc(period_range.end),
        month_key=get_month_key_for_period(reference, zone),
        next_period_start=as_utc(get_next_period_date(reference, period_type, zone)),
        previous_period_start=as_utc(
            get_previous_period_date(reference, period_type, zone)
        ),
    )


@app.post("/api/budget/summary", response_model=BudgetSummaryResponse)
def budget_summary(payload: BudgetSummaryIn):
    try:
        service = BudgetSummaryService(get_settings().timezone)
        response = service.summarize(payload)
    except ValueError as exc:
        logging.warning(f"summary_rejected: user={payload.user_id} reason={exc}")
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    logging.info(
        f"summary_computed: user={payload.user_id} view={payload.budget_view.value} "
        f"period={response.period_label} rows={len(response.rows)} tbb={response.tbb}"
    )
    return response


def main():
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    main()
