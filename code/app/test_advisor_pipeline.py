import json
import logging
import threading

import pytest
import requests

from app.ai import llm_client
from app.core import pipeline
from app.core.models import AdvisorResponse, Preferences, Scenario
from app.core.pipeline import AdvisorCache, make_llm_strategy, run_advisor, run_configured_advisor
from app.core.prompts import build_user_prompt
from app.core.sample_payloads import SAMPLE_SCENARIO
from app.core.tools import build_summary, hash_summary
from finance.forecast import compute_forecast

LLM_ANSWER = {
    "insights": [{"title": "From the model", "why": "Numbers", "impact_aed": 12.5, "confidence": "low"}],
    "alerts": [],
    "actions": [],
}


@pytest.fixture
def scenario():
    return Scenario.model_validate(SAMPLE_SCENARIO).to_input()


@pytest.fixture
def forecast(scenario):
    return compute_forecast(scenario)


def chat_response(text):
    return {"choices": [{"message": {"role": "assistant", "content": text}}]}


def fake_query(text):
    calls = []

    def query(provider, system_prompt, user_prompt, model):
        calls.append((provider, model, user_prompt))
        return chat_response(text)

    query.calls = calls
    return query


def test_heuristic_run_is_schema_valid_and_cached(scenario, forecast):
    cache = AdvisorCache()
    first = run_advisor(scenario, forecast, Preferences(), cache=cache)
    assert first.model == "heuristic-v1"
    assert first.from_cache is False
    assert isinstance(first.response, AdvisorResponse)
    assert 1 <= len(first.response.insights) <= 6

    second = run_advisor(scenario, forecast, Preferences(), cache=cache)
    assert second.from_cache is True
    assert second.input_hash == first.input_hash
    assert second.response is first.response


def test_llm_answer_is_used_when_valid(scenario, forecast):
    query = fake_query(json.dumps(LLM_ANSWER))
    strategy = make_llm_strategy("openai", "gpt-test", query=query)
    cache = AdvisorCache()
    run = run_advisor(scenario, forecast, Preferences(), cache=cache, strategy=strategy, model="gpt-test")
    assert run.model == "gpt-test"
    assert run.response.insights[0].title == "From the model"
    assert query.calls[0][:2] == ("openai", "gpt-test")
    assert "currency: USD" in query.calls[0][2]
    assert len(cache) == 1


@pytest.mark.parametrize(
    "text, expected_model",
    [
        ("this is not json", "heuristic-v1 (parse-fallback)"),
        (json.dumps({"insights": [], "alerts": [], "actions": []}), "heuristic-v1 (validation-fallback)"),
        (json.dumps({**LLM_ANSWER, "extra": 1}), "heuristic-v1 (validation-fallback)"),
        (
            '{"insights":[{"title":"t","why":"w","impact_aed":NaN,"confidence":"low"}],"alerts":[],"actions":[]}',
            "heuristic-v1 (validation-fallback)",
        ),
        (
            json.dumps({
                **LLM_ANSWER,
                "actions": [{
                    "id": "a1",
                    "label": "Boost",
                    "changes": {},
                    "expectedOutcome": {"netWorthDelta": float("inf"), "minCashDelta": 0},
                }],
            }),
            "heuristic-v1 (validation-fallback)",
        ),
    ],
)
def test_bad_llm_output_falls_back_to_heuristic(scenario, forecast, text, expected_model, caplog):
    strategy = make_llm_strategy("openai", "gpt-test", query=fake_query(text))
    cache = AdvisorCache()
    with caplog.at_level(logging.WARNING, logger="app.core.pipeline"):
        run = run_advisor(scenario, forecast, Preferences(), cache=cache, strategy=strategy, model="gpt-test")
    assert run.model == expected_model
    assert run.response.insights[0].title == "Projected net worth"
    assert len(cache) == 0
    assert "falling back" in caplog.text


def test_provider_failure_falls_back_to_heuristic(scenario, forecast):
    def broken(provider, system_prompt, user_prompt, model):
        raise requests.ConnectionError("connection refused")

    strategy = make_llm_strategy("anthropic", "claude-test", query=broken)
    run = run_advisor(scenario, forecast, Preferences(), strategy=strategy, model="claude-test")
    assert run.model == "heuristic-v1"
    assert run.from_cache is False
    assert run.response.insights


def test_mock_provider_uses_heuristic(scenario, forecast, monkeypatch):
    monkeypatch.setattr(llm_client, "AI_PROVIDER", "mock")
    run = run_configured_advisor(scenario, forecast, Preferences())
    assert run.model == "heuristic-v1"


def test_missing_api_key_uses_heuristic(scenario, forecast, monkeypatch):
    monkeypatch.setattr(llm_client, "AI_PROVIDER", "openai")
    monkeypatch.setattr(llm_client, "OPENAI_API_KEY", None)
    assert pipeline.default_strategy() is None
    assert run_configured_advisor(scenario, forecast, Preferences()).model == "heuristic-v1"


def test_configured_provider_routes_through_query(scenario, forecast, monkeypatch):
    monkeypatch.setattr(llm_client, "AI_PROVIDER", "openai")
    monkeypatch.setattr(llm_client, "OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(llm_client, "AI_MODEL", "")
    monkeypatch.setattr(llm_client, "query_openai", lambda system, user, model: chat_response(json.dumps(LLM_ANSWER)))
    run = run_configured_advisor(scenario, forecast, Preferences())
    assert run.model == "gpt-4o-mini"
    assert run.response.insights[0].title == "From the model"


def test_cache_evicts_least_recently_used():
    cache = AdvisorCache(max_entries=2)
    response = AdvisorResponse.model_validate(LLM_ANSWER)
    cache.put("a", response)
    cache.put("b", response)
    assert cache.get("a") is response
    cache.put("c", response)
    assert cache.get("b") is None
    assert cache.get("a") is response
    assert len(cache) == 2


def test_summary_hash_is_stable_and_preference_sensitive(scenario, forecast):
    summary = build_summary(scenario, forecast, Preferences())
    assert hash_summary(summary) == hash_summary(build_summary(scenario, forecast, Preferences()))
    assert len(hash_summary(summary)) == 16
    other = build_summary(scenario, forecast, Preferences(emergency_fund_months=6))
    assert hash_summary(other) != hash_summary(summary)


def test_summary_totals(scenario, forecast):
    summary = build_summary(scenario, forecast, Preferences())
    assert summary["totalMonthlyIncome"] == 5000
    assert summary["totalMonthlyFixedExpenses"] == 2070
    assert summary["totalMonthlyDiscretionary"] == 380
    assert summary["totalDebtBalance"] == 20500
    assert summary["totalMonthlyContribution"] == 450
    assert summary["forecast"]["endCash"] == forecast.summary.end_cash
    prompt = build_user_prompt(summary)
    assert "Tone: concise" in prompt
    assert "Negative cash months:" in prompt


def test_extract_text_handles_both_provider_shapes():
    assert llm_client.extract_text(chat_response(" {} ")) == "{}"
    assert llm_client.extract_text({"content": [{"type": "text", "text": "{\"a\": 1}"}]}) == "{\"a\": 1}"
    assert llm_client.extract_text({"choices": []}) == ""


@pytest.mark.parametrize("reply", [["unexpected"], "a bare string", None])
def test_non_object_provider_reply_falls_back(scenario, forecast, reply):
    strategy = make_llm_strategy("anthropic", "claude-test", query=lambda *args: reply)
    cache = AdvisorCache()
    run = run_advisor(scenario, forecast, Preferences(), cache=cache, strategy=strategy, model="claude-test")
    assert run.model == "heuristic-v1 (parse-fallback)"
    assert run.response.insights
    assert len(cache) == 0


def test_extract_text_ignores_odd_choices():
    assert llm_client.extract_text({"choices": "not a list"}) == ""
    assert llm_client.extract_text({"choices": 3}) == ""


def test_base_currency_reaches_summary_and_prompt(scenario, forecast):
    summary = build_summary(scenario, forecast, Preferences(base_currency="EUR"))
    assert summary["preferences"]["baseCurrency"] == "EUR"
    assert "Base currency: EUR" in build_user_prompt(summary)
    assert hash_summary(summary) != hash_summary(build_summary(scenario, forecast, Preferences()))


def test_cache_survives_concurrent_access():
    cache = AdvisorCache(max_entries=4)
    response = AdvisorResponse.model_validate(LLM_ANSWER)
    errors = []

    def churn(offset):
        try:
            for i in range(2000):
                key = str((i + offset) % 8)
                cache.put(key, response)
                cache.get(str((i + offset + 1) % 8))
        except Exception as exc:
            errors.append(exc)

    workers = [threading.Thread(target=churn, args=(n,)) for n in range(8)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()
    assert errors == []
    assert len(cache) == 4
