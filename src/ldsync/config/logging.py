"""Logging setup for the command line."""

from __future__ import annotations

import logging

# Chatty at INFO; only surfaced with --verbose.
THIRD_PARTY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "hishel", "rdflib", "aiolimiter")


def configure_logging(*, verbose: bool = False, force: bool = False) -> None:
    """Log to stderr at INFO, or DEBUG for ``verbose``; third-party loggers stay at WARNING."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=force,
    )
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)
