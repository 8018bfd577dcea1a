"""
Loading batch files from disk or over HTTP.

The whole file is read into memory once; batch files are assumed to be
static and small enough for that.
"""

from __future__ import annotations

from pathlib import Path

import httpx

from batchdecode.errors import ManifestError

from .models import Manifest


def fetch_text(url: str, *, timeout: float = 10.0) -> str:
    """
    Fetch a text document from URL.

    Raises:
        httpx.HTTPError: If request fails
    """
    with httpx.Client(timeout=timeout, follow_redirects=True) as client:
        resp = client.get(url)
        resp.raise_for_status()
        return resp.text


def load_text(path_or_url: str) -> str:
    """
    Load text from file path or URL.

    Inputs starting with http:// or https:// are fetched, everything else is
    read from the filesystem.
    """
    if path_or_url.startswith("http://") or path_or_url.startswith("https://"):
        return fetch_text(path_or_url)

    p = Path(path_or_url).expanduser()
    return p.read_text(encoding="utf-8")


def load_manifest(path_or_url: str | Path) -> Manifest:
    """
    Read a batch file into a Manifest.

    Line order is preserved and blank lines are kept; they surface as
    records with an empty primary token.

    Parameters:
        path_or_url: Batch file path or URL

    Returns:
        Manifest with one entry per line

    Raises:
        ManifestError: If the file cannot be read or fetched

    Example:
        >>> manifest = load_manifest("batch.txt")
        >>> len(manifest)
        10
    """
    source = str(path_or_url)
    try:
        text = load_text(source)
    except (OSError, UnicodeDecodeError, httpx.HTTPError) as e:
        raise ManifestError(f"Cannot read batch file {source}: {e}") from e

    # Only \n, \r and \r\n end a line; form feeds and Unicode separators stay inside it.
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    if lines[-1] == "":
        lines.pop()
    return Manifest(source=source, lines=tuple(lines))
