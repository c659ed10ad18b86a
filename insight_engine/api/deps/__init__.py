"""Dependency injection providers."""
from .providers import get_search_client, get_settings

__all__ = ["get_search_client", "get_settings"]
