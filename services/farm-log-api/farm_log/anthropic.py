import os
from typing import Any

import httpx

ANTHROPIC_BASE_URL = os.getenv("ANTHROPIC_BASE_URL", "https://api.anthropic.com")
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "").strip() or None
ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-3-5-sonnet-20241022")
ANTHROPIC_MAX_TOKENS = int(os.getenv("ANTHROPIC_MAX_TOKENS", "200"))
ANTHROPIC_TIMEOUT = float(os.getenv("ANTHROPIC_TIMEOUT", "30"))
ANTHROPIC_VERSION = "2023-06-01"

_anthropic_client: httpx.AsyncClient | None = None


async def startup_anthropic_client() -> None:
    global _anthropic_client
    if _anthropic_client is None:
        _anthropic_client = httpx.AsyncClient(
            base_url=ANTHROPIC_BASE_URL, timeout=httpx.Timeout(ANTHROPIC_TIMEOUT)
        )


async def shutdown_anthropic_client() -> None:
    global _anthropic_client
    if _anthropic_client is not None:
        await _anthropic_client.aclose()
        _anthropic_client = None


def get_anthropic_client() -> httpx.AsyncClient:
    if _anthropic_client is None:
        raise RuntimeError("Anthropic client is not initialized")
    return _anthropic_client


def _first_text_block(data: dict[str, Any]) -> str | None:
    for block in data.get("content") or []:
        if isinstance(block, dict) and block.get("type", "text") == "text":
            text = block.get("text")
            if isinstance(text, str) and text.strip():
                return text
    return None


async def generate_text(
    prompt: str,
    client: httpx.AsyncClient,
    *,
    model: str | None = None,
    max_tokens: int | None = None,
) -> str:
    if not ANTHROPIC_API_KEY:
        raise RuntimeError("ANTHROPIC_API_KEY is not set")

    payload = {
        "model": model or ANTHROPIC_MODEL,
        "max_tokens": max_tokens or ANTHROPIC_MAX_TOKENS,
        "messages": [{"role": "user", "content": prompt}],
    }
    response = await client.post(
        "/v1/messages",
        json=payload,
        headers={
            "x-api-key": ANTHROPIC_API_KEY,
            "anthropic-version": ANTHROPIC_VERSION,
        },
    )
    if response.status_code != 200:
        raise RuntimeError(
            f"Anthropic messages request failed ({response.status_code}): {response.text}"
        )
    try:
        data = response.json()
    except ValueError as exc:
        raise RuntimeError("Anthropic messages response is not JSON") from exc
    text = _first_text_block(data) if isinstance(data, dict) else None
    if text is None:
        raise RuntimeError(f"Anthropic messages response missing text: {data}")
    return text
