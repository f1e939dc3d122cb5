"""Completion endpoint client."""

from .client import CancellationToken, CompletionRequest, GenerationClient

__all__ = ["CancellationToken", "CompletionRequest", "GenerationClient"]
