"""Prompt assembly for article generation."""

from .builder import PromptBuilder, PromptMessage

__all__ = ["PromptBuilder", "PromptMessage"]
