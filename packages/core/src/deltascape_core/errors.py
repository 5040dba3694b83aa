"""Exceptions raised by the summarization pipeline."""

from __future__ import annotations


class DeltascapeError(Exception):
    """Base class for every error the pipeline raises on purpose."""


class SegmentationInvariantViolation(DeltascapeError):
    """A chunk produced from a diff broke its size contract.

    Indicates a bug in the segmenter or packer. Fatal for the whole run.
    """


class SummarizationFailure(DeltascapeError):
    """The language model errored or returned no usable content."""


class NotMergedError(DeltascapeError):
    """The pull request has no merge timestamp and is not reported."""

    def __init__(self, owner: str, repo: str, number: int):
        super().__init__(f"Pull request {owner}/{repo}#{number} is not merged")
        self.owner = owner
        self.repo = repo
        self.number = number


class ExternalFetchError(DeltascapeError):
    """Fetching PR metadata, a PR listing or a raw diff from GitHub failed."""
