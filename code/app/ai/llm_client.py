import os
from typing import Any, Dict
from urllib.parse import urlparse, urlunparse

import requests
from openai import OpenAI

AI_PROVIDER = os.getenv("AI_PROVIDER", "mock").strip().lower()
AI_MODEL = os.getenv("AI_MODEL", "")
LLM_BASE_URL = os.getenv("LLM_BASE_URL", "https://api.openai.com/v1")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
ANTHROPIC_BASE_URL = os.getenv("ANTHROPIC_BASE_URL", "https://api.anthropic.com")
ANTHROPIC_VERSION = os.getenv("ANTHROPIC_VERSION", "2023-06-01")
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "25"))
LLM_MAX_RETRIES = max(0, int(os.getenv("LLM_MAX_RETRIES", "0")))
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "1024"))

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-haiku-4-5-20251001",
}


def resolve_model(provider: str) -> str:
    return AI_MODEL or DEFAULT_MODELS.get(provider, provider)


def provider_configured(provider: str) -> bool:
    if provider == "openai":
        return bool(OPENAI_API_KEY)
    if provider == "anthropic":
        return bool(ANTHROPIC_API_KEY)
    return False


def _base_url() -> str:
    parsed = urlparse(LLM_BASE_URL)
    path = parsed.path.rstrip("/")
    if path.endswith("/chat/completions"):
        path = path[: -len("/chat/completions")]
    elif path.endswith("/completions"):
        path = path[: -len("/completions")]
    base = parsed._replace(path=path, params="", query="", fragment="")
    return urlunparse(base)


def _get_client() -> OpenAI:
    return OpenAI(base_url=_base_url(), api_key=OPENAI_API_KEY, max_retries=LLM_MAX_RETRIES)


def query_openai(system_prompt: str, user_prompt: str, model: str) -> Dict[str, Any]:
    if not OPENAI_API_KEY:
        raise RuntimeError("Missing OPENAI_API_KEY. Set the environment variable and restart the app.")
    client = _get_client()
    response = client.chat.completions.create(
        model=model,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        temperature=0,
        max_tokens=LLM_MAX_TOKENS,
        response_format={"type": "json_object"},
        timeout=LLM_TIMEOUT,
    )
    return response.model_dump()


def query_anthropic(system_prompt: str, user_prompt: str, model: str) -> Dict[str, Any]:
    if not ANTHROPIC_API_KEY:
        raise RuntimeError("Missing ANTHROPIC_API_KEY. Set the environment variable and restart the app.")
    resp = requests.post(
        f"{ANTHROPIC_BASE_URL.rstrip('/')}/v1/messages",
        headers={
            "x-api-key": ANTHROPIC_API_KEY,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        },
        json={
            "model": model,
            "max_tokens": LLM_MAX_TOKENS,
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_prompt}],
        },
        timeout=LLM_TIMEOUT,
    )
    resp.raise_for_status()
    return resp.json()


def query_llm(provider: str, system_prompt: str, user_prompt: str, model: str) -> Dict[str, Any]:
    if provider == "openai":
        return query_openai(system_prompt, user_prompt, model)
    if provider == "anthropic":
        return query_anthropic(system_prompt, user_prompt, model)
    raise ValueError(f"Unsupported AI_PROVIDER: {provider}")


def extract_text(response: Dict[str, Any]) -> str:
    # Anthropic Messages shape
    content = response.get("content")
    if isinstance(content, list):
        for block in content:
            if isinstance(block, dict) and block.get("type") == "text":
                return str(block.get("text", "")).strip()
        return ""

    choices = response.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    choice = choices[0]
    message = choice.get("message") if isinstance(choice, dict) else None
    if isinstance(message, dict):
        text = message.get("content")
        if isinstance(text, str) and text.strip():
            return text.strip()
        return ""
    text = choice.get("text") if isinstance(choice, dict) else None
    if text:
        return str(text).strip()
    return ""
