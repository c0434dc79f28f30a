import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from app.ai import llm_client
from app.core.models import (
    AdvisorMeta,
    AdvisorRequest,
    ForecastResponse,
    Scenario,
    Summary,
    WhatIfRequest,
)
from app.core.pipeline import AdvisorCache, run_configured_advisor, run_whatif, utc_timestamp
from app.observability import setup_logging
from finance.export import snapshots_to_csv, summary_to_dict
from finance.forecast import compute_forecast

ADVISOR_CACHE_SIZE = int(os.getenv("ADVISOR_CACHE_SIZE", "256"))

logger = logging.getLogger(__name__)

setup_logging()
app = FastAPI(title="WealthFlow Forecast API")
app.state.advisor_cache = AdvisorCache(ADVISOR_CACHE_SIZE)


@app.get("/health")
def health():
    return {"status": "ok", "advisorProvider": llm_client.AI_PROVIDER}


@app.post("/forecast", response_model=ForecastResponse, response_model_by_alias=True)
def forecast(payload: Scenario):
    return ForecastResponse.from_result(compute_forecast(payload.to_input()))


@app.post("/forecast/export.csv", response_class=PlainTextResponse)
def export_forecast_csv(payload: Scenario):
    result = compute_forecast(payload.to_input())
    return PlainTextResponse(
        snapshots_to_csv(result),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="wealthflow-forecast-{payload.currency}.csv"'},
    )


@app.post("/advisor")
def advisor(payload: AdvisorRequest, request: Request):
    scenario = payload.scenario.to_input()
    result = compute_forecast(scenario)
    run = run_configured_advisor(scenario, result, payload.preferences, cache=request.app.state.advisor_cache)
    logger.info(
        "advisor run complete",
        extra={"extra_fields": {"model": run.model, "input_hash": run.input_hash, "from_cache": run.from_cache}},
    )
    meta = AdvisorMeta(model=run.model, input_hash=run.input_hash, from_cache=run.from_cache, run_at=utc_timestamp())
    return {
        "advisor": run.response.to_wire(),
        "meta": meta.model_dump(by_alias=True),
        "forecastSummary": summary_to_dict(result.summary),
    }


@app.post("/whatif")
def whatif(payload: WhatIfRequest):
    out = run_whatif(payload)
    return {
        "base": Summary.model_validate(summary_to_dict(out["base"].summary)).model_dump(by_alias=True),
        "adjusted": Summary.model_validate(summary_to_dict(out["adjusted"].summary)).model_dump(by_alias=True),
        "delta": out["delta"],
    }
