"""Code-list adapter."""

from __future__ import annotations

from .client import CodeListClient
from .parsing import CodeListFormatError, parse_code_list, rdf_format_for
from .schema import CodeListItem

__all__ = [
    "CodeListClient",
    "CodeListFormatError",
    "CodeListItem",
    "parse_code_list",
    "rdf_format_for",
]
