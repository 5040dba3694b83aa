"""Base summarizer implementing the Template Method pattern.

All providers share the same call contract:
    summarize() → _call_api()   ← only this differs per provider
              → empty/failed response becomes SummarizationFailure

Subclasses implement two things only:
  - __init__: validate and store the async SDK client
  - _call_api: make one raw API call and return the text response

Temperature defaults, error conversion and response cleanup live here, so
every provider fails the same way: callers only ever see SummarizationFailure.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from deltascape_core.errors import SummarizationFailure

logger = logging.getLogger(__name__)

# Shared defaults: subclasses may override as class attributes if needed.
_DEFAULT_TEMPERATURE = 0.7
_MAX_TOKENS = 1024


class BaseSummarizer(ABC):
    MODEL: str = ""
    DEFAULT_TEMPERATURE: float = _DEFAULT_TEMPERATURE
    MAX_TOKENS: int = _MAX_TOKENS

    def __init__(self, model: str | None = None):
        if model:
            self.MODEL = model

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    async def summarize(self, system_prompt: str, user_prompt: str, *, temperature: float | None = None) -> str:
        """Send one request and return the stripped response text.

        Raises SummarizationFailure when the API call fails or the model
        answers with no content. There is no retry: callers decide whether a
        failure is tolerable.
        """
        # 0 is a valid temperature, so only None falls back to the default.
        if temperature is None:
            temperature = self.DEFAULT_TEMPERATURE
        try:
            text = await self._call_api(system_prompt, user_prompt, temperature)
        except SummarizationFailure:
            raise
        except Exception as e:
            # SDK errors (auth, rate limit, timeout, transport) all surface as
            # one failure type; the original error stays chained as __cause__.
            logger.warning("%s API call failed: %s", self.__class__.__name__, e)
            raise SummarizationFailure(f"{self.__class__.__name__} request failed: {e}") from e

        # Whitespace-only answers count as empty.
        text = (text or "").strip()
        if not text:
            raise SummarizationFailure(f"{self.__class__.__name__} returned no content")
        return text

    # ------------------------------------------------------------------ #
    # Abstract: implement in each provider                                 #
    # ------------------------------------------------------------------ #

    @abstractmethod
    async def _call_api(self, system_prompt: str, user_prompt: str, temperature: float) -> str | None:
        """Make a single API call and return the raw text response.

        This is the only method subclasses must implement. It should raise on
        transport or API errors and may return None when the response carries
        no text; summarize() turns both into SummarizationFailure.
        """
