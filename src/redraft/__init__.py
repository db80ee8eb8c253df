"""Rewrite the prose of HTML documents in place through an external rewrite service."""

from .api_client import RewriteClient
from .config import Settings, get_settings, load_settings
from .outcome import RewriteOutcome, classify_outcome
from .pipeline import RewritePipeline, RewriteResult, rewrite_html

__all__ = [
    "RewriteClient",
    "RewriteOutcome",
    "RewritePipeline",
    "RewriteResult",
    "Settings",
    "classify_outcome",
    "get_settings",
    "load_settings",
    "rewrite_html",
]
