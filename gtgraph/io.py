"""Byte-buffer suppliers: read a whole gt file from disk or over HTTP."""

import logging
from pathlib import Path
from typing import Union

import httpx


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0


def read_file(path: Union[str, Path]) -> bytes:
    """Read the complete file at ``path``."""
    path = Path(path)
    data = path.read_bytes()
    logger.debug("Read %d bytes from %s", len(data), path)
    return data


def fetch_url(url: str, timeout: float = DEFAULT_TIMEOUT, client=None) -> bytes:
    """Download ``url`` and return the response body.

    Args:
        url: Location of a ``.gt`` or ``.gt.zst`` file.
        timeout: Request timeout in seconds.
        client: Optional ``httpx.Client`` to reuse; one is created otherwise.

    Raises:
        httpx.HTTPStatusError: non-2xx response.
        httpx.RequestError: transport failure.
    """
    if client is None:
        with httpx.Client(timeout=timeout, follow_redirects=True) as owned:
            return fetch_url(url, timeout=timeout, client=owned)

    response = client.get(url)
    response.raise_for_status()
    logger.debug("Fetched %d bytes from %s", len(response.content), url)
    return response.content
