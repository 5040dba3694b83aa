from __future__ import annotations

from deltascape_core.providers.base import BaseSummarizer


class AnthropicSummarizer(BaseSummarizer):
    MODEL = "claude-sonnet-4-20250514"

    def __init__(self, api_key: str, model: str | None = None):
        try:
            from anthropic import AsyncAnthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for this provider. " "Install it with: pip install anthropic"
            )
        super().__init__(model)
        self.client = AsyncAnthropic(api_key=api_key)

    async def _call_api(self, system_prompt: str, user_prompt: str, temperature: float) -> str | None:
        # anthropic is optional; __init__ already validated it is installed.
        from anthropic.types import TextBlock

        response = await self.client.messages.create(
            model=self.MODEL,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
            temperature=temperature,
            max_tokens=self.MAX_TOKENS,
        )
        return "".join(block.text for block in response.content if isinstance(block, TextBlock))
