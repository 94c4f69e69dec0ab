"""Day summarizers.

Provides the abstract Summarizer interface, a template-based heuristic
summarizer, and a local language model summarizer.
"""

from pulselog.summarizer.base import Summarizer
from pulselog.summarizer.heuristic import HeuristicSummarizer

__all__ = [
    "HeuristicSummarizer",
    "LocalLLMSummarizer",
    "Summarizer",
]


def __getattr__(name: str):
    if name == "LocalLLMSummarizer":
        from pulselog.summarizer.local_llm import LocalLLMSummarizer
        return LocalLLMSummarizer
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
