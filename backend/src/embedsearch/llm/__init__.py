"""Ranking model integration for embedsearch."""

from .client import SYSTEM_PROMPT, CompletionResult, RankingModelClient

__all__ = ["SYSTEM_PROMPT", "CompletionResult", "RankingModelClient"]
