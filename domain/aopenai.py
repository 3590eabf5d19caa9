import os

import httpx
import openai


MAX_TOKENS = 1000
TIMEOUT = 60 * 2
DEFAULT_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4o-mini")


def openai_client_factory(api_key: str) -> openai.AsyncClient:
    return openai.AsyncClient(
        api_key=api_key,
        http_client=httpx.AsyncClient(timeout=TIMEOUT),
    )


async def quick_chat(
    msg: str,
    *,
    openai_client: openai.AsyncClient,
    model: str | None = None,
    max_tokens: int = MAX_TOKENS,
) -> str:
    model = DEFAULT_MODEL if model is None else model
    resp = await openai_client.chat.completions.create(
        model=model,
        messages=[{"role": "user", "content": msg}],
        max_tokens=max_tokens,
    )
    if not resp.choices:
        return ""
    ans = resp.choices[0].message.content or ""
    return ans.strip()
