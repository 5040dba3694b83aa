"""Diff compression: chunk a raw diff, summarize chunks concurrently, join."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

from deltascape_core import prompts
from deltascape_core.config import PipelineConfig
from deltascape_core.errors import SegmentationInvariantViolation, SummarizationFailure
from deltascape_core.providers.base import BaseSummarizer
from deltascape_core.utils.diff import chunk_diff

logger = logging.getLogger(__name__)

ChunkSummarizer = Callable[[str], Awaitable[str]]


async def dispatch_summaries(chunks: Sequence[str], summarize: ChunkSummarizer, limit: int) -> list[str | None]:
    """Summarize every chunk with at most ``limit`` calls in flight.

    Results line up with ``chunks`` whatever order the calls finish in. A
    chunk whose call raises SummarizationFailure yields None and does not
    affect its siblings; any other exception propagates.
    """
    if limit < 1:
        raise ValueError(f"limit must be at least 1, got {limit}")
    if not chunks:
        return []

    semaphore = asyncio.Semaphore(limit)

    async def _summarize_one(index: int, chunk: str) -> str | None:
        async with semaphore:
            try:
                return await summarize(chunk)
            except SummarizationFailure as e:
                logger.warning("Chunk %d/%d dropped from summary: %s", index + 1, len(chunks), e)
                return None

    return list(await asyncio.gather(*(_summarize_one(i, c) for i, c in enumerate(chunks))))


async def compress_diff(diff: str, summarizer: BaseSummarizer, config: PipelineConfig) -> str:
    """Reduce a raw diff to a few sentences per chunk, joined in diff order.

    An empty diff returns "" without calling the model. Chunks whose
    compression failed are left out of the result.
    """
    if not diff:
        return ""

    max_size = config.max_chunk_size
    chunks = chunk_diff(diff, max_size, config.chunk_separator)
    oversized = [i for i, c in enumerate(chunks) if len(c) > max_size]
    if oversized:
        raise SegmentationInvariantViolation(
            f"{len(oversized)} chunk(s) exceed {max_size} characters (first at index {oversized[0]})"
        )
    logger.debug("Diff of %d chars packed into %d chunk(s)", len(diff), len(chunks))

    async def _compress(chunk: str) -> str:
        return await summarizer.summarize(
            prompts.COMPRESS_DIFF, chunk, temperature=config.compression_temperature
        )

    compressed = await dispatch_summaries(chunks, _compress, config.concurrency)
    dropped = sum(1 for c in compressed if c is None)
    if dropped:
        logger.warning("%d of %d diff chunk(s) could not be compressed", dropped, len(chunks))
    return "\n".join(c for c in compressed if c)
