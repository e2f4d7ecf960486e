"""Shared httpx client factory.

Passing an explicit ``ssl.create_default_context()`` makes httpx load the
system certificate store, which some managed Python builds otherwise miss.
"""

from __future__ import annotations

import ssl
from typing import Any

import httpx

from postfeed import __version__

DEFAULT_USER_AGENT = f"postfeed/{__version__}"


def _ssl_context() -> ssl.SSLContext:
    return ssl.create_default_context()


def make_httpx_client(**kwargs: Any) -> httpx.AsyncClient:
    """Create an ``httpx.AsyncClient`` with JSON defaults.

    Accepts the same keyword arguments as ``httpx.AsyncClient``.
    If ``verify`` is not explicitly provided, uses the system SSL context.
    """
    kwargs.setdefault("verify", _ssl_context())
    headers = dict(kwargs.pop("headers", None) or {})
    headers.setdefault("User-Agent", DEFAULT_USER_AGENT)
    headers.setdefault("Accept", "application/json")
    kwargs["headers"] = headers
    return httpx.AsyncClient(**kwargs)
