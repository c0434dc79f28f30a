import json
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from app.ai import llm_client
from finance.advisor import run_heuristic_advisor
from finance.forecast import compute_forecast
from finance.schemas import ForecastResult, ScenarioInput
from finance.whatif import apply_action_changes, apply_quick_adjustments, compare_forecasts

from .models import AdvisorResponse, Preferences, WhatIfRequest
from .prompts import SYSTEM_PROMPT, build_user_prompt
from .tools import build_summary, hash_summary

logger = logging.getLogger(__name__)

HEURISTIC_MODEL = "heuristic-v1"

AdvisoryStrategy = Callable[[ScenarioInput, ForecastResult, Preferences], AdvisorResponse]


class AdvisorError(Exception):
    """An advisory strategy could not produce a schema-valid response."""

    fallback_model = HEURISTIC_MODEL


class ProviderError(AdvisorError):
    pass


class MalformedResponse(AdvisorError):
    fallback_model = f"{HEURISTIC_MODEL} (parse-fallback)"


class SchemaRejected(AdvisorError):
    fallback_model = f"{HEURISTIC_MODEL} (validation-fallback)"


class AdvisorCache:
    """Bounded LRU of advisor responses keyed by input hash.

    Owned by whoever runs the advisor (the service keeps one on app.state).
    """

    def __init__(self, max_entries: int = 256):
        self.max_entries = max(1, max_entries)
        self._entries: "OrderedDict[str, AdvisorResponse]" = OrderedDict()
        # sync endpoints share one cache across the threadpool
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[AdvisorResponse]:
        with self._lock:
            response = self._entries.get(key)
            if response is not None:
                self._entries.move_to_end(key)
            return response

    def put(self, key: str, response: AdvisorResponse) -> None:
        with self._lock:
            self._entries[key] = response
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


@dataclass
class AdvisorRun:
    response: AdvisorResponse
    model: str
    input_hash: str
    from_cache: bool


def heuristic_strategy(scenario: ScenarioInput, forecast: ForecastResult, prefs: Preferences) -> AdvisorResponse:
    raw = run_heuristic_advisor(scenario, forecast, prefs.emergency_fund_months)
    return AdvisorResponse.model_validate(raw)


def parse_advisor_text(text: str) -> AdvisorResponse:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedResponse(f"advisor response is not JSON: {exc}") from exc
    try:
        return AdvisorResponse.model_validate(parsed)
    except ValidationError as exc:
        raise SchemaRejected(f"advisor response failed validation: {exc.error_count()} errors") from exc


def make_llm_strategy(
    provider: str,
    model: str,
    query: Callable[..., Dict[str, Any]] = llm_client.query_llm,
) -> AdvisoryStrategy:
    def strategy(scenario: ScenarioInput, forecast: ForecastResult, prefs: Preferences) -> AdvisorResponse:
        summary = build_summary(scenario, forecast, prefs)
        try:
            response = query(provider, SYSTEM_PROMPT, build_user_prompt(summary), model)
        except Exception as exc:
            raise ProviderError(f"{provider} call failed: {exc}") from exc
        if not isinstance(response, dict):
            raise MalformedResponse(f"{provider} returned {type(response).__name__}, expected an object")
        return parse_advisor_text(llm_client.extract_text(response))

    return strategy


def default_strategy() -> Optional[AdvisoryStrategy]:
    provider = llm_client.AI_PROVIDER
    if provider == "mock" or not llm_client.provider_configured(provider):
        return None
    return make_llm_strategy(provider, llm_client.resolve_model(provider))


def run_advisor(
    scenario: ScenarioInput,
    forecast: ForecastResult,
    prefs: Optional[Preferences] = None,
    cache: Optional[AdvisorCache] = None,
    strategy: Optional[AdvisoryStrategy] = None,
    model: Optional[str] = None,
) -> AdvisorRun:
    """Advise on ``forecast``, trying ``strategy`` first and degrading to the heuristic.

    With no ``strategy`` the heuristic runs directly. Any ``AdvisorError``
    from the strategy is logged and answered by the heuristic, so callers
    always receive a schema-valid response.
    """
    prefs = prefs or Preferences()
    input_hash = hash_summary(build_summary(scenario, forecast, prefs))
    model = model or (HEURISTIC_MODEL if strategy is None else "llm")

    if cache is not None:
        cached = cache.get(input_hash)
        if cached is not None:
            return AdvisorRun(response=cached, model=model, input_hash=input_hash, from_cache=True)

    if strategy is None:
        response = heuristic_strategy(scenario, forecast, prefs)
        if cache is not None:
            cache.put(input_hash, response)
        return AdvisorRun(response=response, model=HEURISTIC_MODEL, input_hash=input_hash, from_cache=False)

    try:
        response = strategy(scenario, forecast, prefs)
    except AdvisorError as exc:
        logger.warning(
            "advisor strategy failed, falling back to heuristic",
            extra={"extra_fields": {"input_hash": input_hash, "failure": type(exc).__name__, "detail": str(exc)}},
        )
        response = heuristic_strategy(scenario, forecast, prefs)
        return AdvisorRun(response=response, model=exc.fallback_model, input_hash=input_hash, from_cache=False)

    if cache is not None:
        cache.put(input_hash, response)
    return AdvisorRun(response=response, model=model, input_hash=input_hash, from_cache=False)


def run_configured_advisor(
    scenario: ScenarioInput,
    forecast: ForecastResult,
    prefs: Preferences,
    cache: Optional[AdvisorCache] = None,
) -> AdvisorRun:
    strategy = default_strategy()
    model = None if strategy is None else llm_client.resolve_model(llm_client.AI_PROVIDER)
    return run_advisor(scenario, forecast, prefs, cache=cache, strategy=strategy, model=model)


def run_whatif(payload: WhatIfRequest) -> Dict[str, Any]:
    base_input = payload.scenario.to_input()
    adjusted_input = base_input
    if payload.changes is not None:
        adjusted_input = apply_action_changes(adjusted_input, payload.changes.model_dump(by_alias=True, exclude_none=True))
    adjusted_input = apply_quick_adjustments(
        adjusted_input,
        income_pct=payload.income_pct,
        expense_pct=payload.expense_pct,
        invest_pct=payload.invest_pct,
    )
    base = compute_forecast(base_input)
    adjusted = compute_forecast(adjusted_input)
    return {"base": base, "adjusted": adjusted, "delta": compare_forecasts(base, adjusted)}


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
