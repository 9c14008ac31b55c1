"""
Protocol helpers shared by both deployment strategies and the HTTP layer.
"""

from typing import List
from urllib.parse import quote

DEFAULT_REF = "main"
VERSION_MARKER = "v"
GZIP_CODINGS = ("gzip", "x-gzip")
ANY_CODING = "*"


def normalize_ref(ref: str | None) -> str:
    """
    Map a client-supplied ``ref`` onto a tag name.
    
    A missing ref means the mainline; anything else gets the version marker
    prefixed unless it already starts with one. No semver parsing happens
    here, ``1.0.0`` and ``v1.0.0`` both map to ``v1.0.0``.
    """
    if not ref:
        return DEFAULT_REF
    if ref.startswith(VERSION_MARKER):
        return ref
    return VERSION_MARKER + ref


def _quality(params: str) -> float:
    for param in params.split(";"):
        key, _, value = param.strip().partition("=")
        if key.strip().lower() == "q":
            try:
                return float(value)
            except ValueError:
                return 0.0
    return 1.0


def accepts_gzip(accept_encoding: str | None) -> bool:
    """
    True if an Accept-Encoding header admits gzip with a non-zero quality.
    
    An explicit gzip coding wins over the ``*`` wildcard, so ``gzip;q=0, *``
    still refuses gzip.
    """
    explicit = None
    wildcard = None
    for coding in (accept_encoding or "").split(","):
        token, _, params = coding.strip().partition(";")
        token = token.strip().lower()
        if token in GZIP_CODINGS:
            explicit = max(explicit or 0.0, _quality(params))
        elif token == ANY_CODING:
            wildcard = _quality(params)

    quality = explicit if explicit is not None else wildcard
    return bool(quality and quality > 0)


def download_location(name: str, version: str) -> str:
    """Archive-fetch URL handed out by the download endpoint."""
    return f"/api/modules/{quote(name, safe='')}?archive=tar.gz&ref={quote(version, safe='')}"


def versions_envelope(versions: List[str]) -> dict:
    """Wrap tag names in the module-registry versions response shape."""
    return {"modules": [{"versions": [{"version": v} for v in versions]}]}


def version_path_segment(version: str) -> str:
    """Collision-free directory name for a version in the asset cache."""
    return quote(version, safe="")


def content_disposition(name: str) -> str:
    """
    Attachment header for ``<name>.tar.gz``.
    
    Names that are plain URL-safe ASCII keep the bare ``filename=`` form;
    anything else is sent as an RFC 6266 ``filename*`` so the header stays
    latin-1 encodable.
    """
    filename = f"{name}.tar.gz"
    quoted = quote(filename, safe="")
    if quoted == filename:
        return f"attachment; filename={filename}"
    return f"attachment; filename*=UTF-8''{quoted}"
