"""Shared CLI state: the loaded AppConfig and client construction."""

from __future__ import annotations

import typer

from perplexica_search.core.api.client import SearchClient
from perplexica_search.core.config import AppConfig


def get_app_config(ctx: typer.Context) -> AppConfig:
    """Return the AppConfig loaded by the root callback."""
    obj = ctx.find_root().obj
    if isinstance(obj, AppConfig):
        return obj
    return AppConfig()


def make_client(config: AppConfig) -> SearchClient:
    """Build the search client for a command."""
    return SearchClient(config.client)
