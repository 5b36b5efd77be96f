"""Client-side verse request flow."""

from .draft_manager import DraftManager
from .proxy_generator import ProxyVerseGenerator, error_from_status
from .request_flow import RequestVerseFlow

__all__ = [
    "DraftManager",
    "ProxyVerseGenerator",
    "RequestVerseFlow",
    "error_from_status",
]
