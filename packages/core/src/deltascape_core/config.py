from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "model": "openai",
    "openai_model": "gpt-4",
    "anthropic_model": "claude-sonnet-4-20250514",
    # Token budget of one compression request and the rough number of diff
    # characters per token; their product is the maximum chunk size.
    "model_max_tokens": 4096,
    "chars_per_token": 2,
    "concurrency": 3,
    "chunk_separator": "\n",
    "compression_temperature": 0.0,
    "narrative_temperature": 0.7,
    "store": "sqlite",
    "store_path": ".deltascape.db",
}


def load_config(config_path: str = ".deltascape.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .deltascape.yml in the current directory
      3. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")
    config["openai_org_id"] = os.environ.get("OPENAI_ORG_ID")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")

    return config


@dataclass(frozen=True)
class PipelineConfig:
    """Settings the summarization pipeline needs, fixed for one process.

    Built once from the loaded config dict and passed explicitly to every
    pipeline function.
    """

    model_max_tokens: int = DEFAULT_CONFIG["model_max_tokens"]
    chars_per_token: int = DEFAULT_CONFIG["chars_per_token"]
    concurrency: int = DEFAULT_CONFIG["concurrency"]
    chunk_separator: str = DEFAULT_CONFIG["chunk_separator"]
    compression_temperature: float = DEFAULT_CONFIG["compression_temperature"]
    narrative_temperature: float = DEFAULT_CONFIG["narrative_temperature"]

    def __post_init__(self):
        if self.model_max_tokens <= 0 or self.chars_per_token <= 0:
            raise ValueError("model_max_tokens and chars_per_token must be positive")
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {self.concurrency}")

    @property
    def max_chunk_size(self) -> int:
        return self.model_max_tokens * self.chars_per_token

    @classmethod
    def from_config(cls, config: dict) -> PipelineConfig:
        return cls(
            model_max_tokens=int(config.get("model_max_tokens", cls.model_max_tokens)),
            chars_per_token=int(config.get("chars_per_token", cls.chars_per_token)),
            concurrency=int(config.get("concurrency", cls.concurrency)),
            chunk_separator=config.get("chunk_separator", cls.chunk_separator),
            compression_temperature=float(config.get("compression_temperature", cls.compression_temperature)),
            narrative_temperature=float(config.get("narrative_temperature", cls.narrative_temperature)),
        )
