#!/usr/bin/env python3
# ascii_image/sources.py
"""
Input opening for ascii-image.

- "-" reads the whole of stdin.
- http:// and https:// inputs are fetched through a retrying requests session.
- Anything else is a local file path.
"""

from __future__ import annotations

import io
import logging
import sys
from typing import BinaryIO, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ascii_image.errors import SourceError

__all__ = ["is_url", "make_session", "open_source"]

log = logging.getLogger(__name__)

STDIN_NAME = "-"


def is_url(name: str) -> bool:
    return name.lower().startswith(("http://", "https://"))


def make_session(user_agent: str, retries: int = 3) -> requests.Session:
    """requests Session that retries connection errors and 429/5xx replies."""
    session = requests.Session()
    session.headers["User-Agent"] = user_agent
    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        backoff_factor=0.3,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def _fetch(url: str, session: requests.Session, timeout: Tuple[float, float]) -> BinaryIO:
    try:
        r = session.get(url, timeout=timeout)
        r.raise_for_status()
    except requests.RequestException as exc:
        raise SourceError(f"Can't fetch {url}: {exc}") from exc
    if not r.content:
        raise SourceError(f"Can't fetch {url}: empty response")
    log.debug("Fetched %s (%d bytes)", url, len(r.content))
    return io.BytesIO(r.content)


def open_source(
    name: str,
    session: Optional[requests.Session] = None,
    timeout: Tuple[float, float] = (5.0, 15.0),
    stdin: Optional[BinaryIO] = None,
) -> BinaryIO:
    """
    Return a readable binary stream for an input name.
    The caller closes it. Raises SourceError when the input cannot be opened.
    """
    if name == STDIN_NAME:
        stream = stdin if stdin is not None else sys.stdin.buffer
        # Pillow needs to seek
        return io.BytesIO(stream.read())

    if is_url(name):
        if session is None:
            raise SourceError(f"Can't fetch {name}: no HTTP session configured")
        return _fetch(name, session, timeout)

    try:
        return open(name, "rb")
    except OSError as exc:
        raise SourceError(f"Can't open {name}") from exc
