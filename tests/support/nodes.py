"""Builders for small JSON-LD documents used across tests."""

from __future__ import annotations

from ldsync.domain.schema import CIDS_CONTEXT


def node(type_name: str, node_id: str, **fields: object) -> dict[str, object]:
    return {"@context": CIDS_CONTEXT, "@type": f"cids:{type_name}", "@id": node_id, **fields}


def organization(node_id: str, legal_name: str, **fields: object) -> dict[str, object]:
    return node("Organization", node_id, **{"org:hasLegalName": legal_name}, **fields)


def indicator(node_id: str, name: str, **fields: object) -> dict[str, object]:
    return node("Indicator", node_id, hasName=name, **fields)
