"""Turn published RDF code-list files (RDF/XML ``.owl`` or Turtle ``.ttl``) into entries."""

from __future__ import annotations

import re
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from pydantic import ValidationError
from rdflib import Graph, Literal, URIRef

from .schema import CodeListItem

if TYPE_CHECKING:
    from rdflib.term import Node

    from ldsync.domain.ports import CodeListEntry

log = getLogger(__name__)

HEADER_PREDICATE = "preferredNamespacePrefix"
IDENTIFIER_PREDICATES = ("hasIdentifier",)
DESCRIPTION_PREDICATES = ("hasDescription", "hasDefinition", "hasCharacteristic", "definition")

_FORMATS = {".owl": "xml", ".rdf": "xml", ".xml": "xml", ".ttl": "turtle"}


class CodeListFormatError(ValueError):
    """Raised when a code-list URL does not point at a supported RDF serialisation."""


def rdf_format_for(url: str) -> str:
    path = urlsplit(url).path
    for suffix, rdf_format in _FORMATS.items():
        if path.endswith(suffix):
            return rdf_format
    raise CodeListFormatError(f"Unsupported code-list format for {url}")


def _local_name(term: Node) -> str:
    return re.split(r"[#/]", str(term).rstrip("/#"))[-1]


def _preferred(values: list[Node]) -> Node:
    for value in values:
        if isinstance(value, Literal) and value.language in (None, "en"):
            return value
    return values[0]


def _first(properties: dict[str, list[Node]], names: tuple[str, ...]) -> str | None:
    for name in names:
        values = properties.get(name)
        if values:
            return str(_preferred(values))
    return None


def parse_code_list(text: str, *, url: str) -> list[CodeListEntry]:
    """Parse ``text`` fetched from ``url``; entries are ordered by ``@id``.

    RDF/XML lists name their codes with ``cids:hasName``; Turtle lists may use
    ``rdfs:label`` instead. The dataset header and list-level entries are skipped.
    """

    rdf_format = rdf_format_for(url)
    name_predicates = ("hasName", "label") if rdf_format == "turtle" else ("hasName",)

    graph = Graph()
    graph.parse(data=text, format=rdf_format, publicID=url)

    subjects: dict[str, dict[str, list[Node]]] = {}
    for subject, predicate, obj in graph:
        if isinstance(subject, URIRef):
            subjects.setdefault(str(subject), {}).setdefault(_local_name(predicate), []).append(obj)

    entries: list[CodeListEntry] = []
    for subject, properties in sorted(subjects.items()):
        if HEADER_PREDICATE in properties:
            continue
        name = _first(properties, name_predicates)
        identifier = _first(properties, IDENTIFIER_PREDICATES)
        if name is None and identifier is None:
            continue
        payload = {
            "@id": subject,
            "hasIdentifier": identifier or _local_name(URIRef(subject)),
            "hasName": name or "",
            "hasDescription": _first(properties, DESCRIPTION_PREDICATES),
        }
        try:
            item = CodeListItem.model_validate(payload)
        except ValidationError as exc:
            log.debug("Skipping code-list entry %s: %s", subject, exc)
            continue
        if item.is_metadata:
            continue
        entries.append(item.to_entry())

    log.debug("Parsed %d code-list entries from %s", len(entries), url)
    return entries
