from __future__ import annotations

try:
    from openai import AsyncOpenAI as _AsyncOpenAI
except ImportError:
    _AsyncOpenAI = None  # type: ignore[assignment,misc]

from deltascape_core.providers.base import BaseSummarizer


class OpenAISummarizer(BaseSummarizer):
    MODEL = "gpt-4"

    def __init__(self, api_key: str, organization: str | None = None, model: str | None = None):
        if _AsyncOpenAI is None:
            raise ImportError(
                "The 'openai' package is required for this provider. " "Install it with: pip install openai"
            )
        super().__init__(model)
        self.client = _AsyncOpenAI(api_key=api_key, organization=organization)

    async def _call_api(self, system_prompt: str, user_prompt: str, temperature: float) -> str | None:
        response = await self.client.chat.completions.create(
            model=self.MODEL,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=self.MAX_TOKENS,
        )
        if not response.choices:
            return None
        return response.choices[0].message.content
