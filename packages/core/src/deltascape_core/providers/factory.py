from __future__ import annotations

from deltascape_core.providers.anthropic import AnthropicSummarizer
from deltascape_core.providers.base import BaseSummarizer
from deltascape_core.providers.openai import OpenAISummarizer


def get_summarizer(config: dict) -> BaseSummarizer:
    model = config["model"]
    if model == "openai":
        return OpenAISummarizer(
            api_key=config["openai_api_key"],
            organization=config.get("openai_org_id"),
            model=config.get("openai_model"),
        )
    if model == "anthropic":
        return AnthropicSummarizer(api_key=config["anthropic_api_key"], model=config.get("anthropic_model"))
    raise ValueError(f"Unknown model provider: {model!r}. Choose 'openai' or 'anthropic'.")
