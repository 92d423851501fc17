"""Prompt rendering for the judgment stages."""

from .builder import PromptBuilder, PromptRequest, RubricDimension

__all__ = ["PromptBuilder", "PromptRequest", "RubricDimension"]
