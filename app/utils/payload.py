"""Helpers for response bodies returned by the Colis Privé tournée service."""

from __future__ import annotations

import base64
import binascii
import logging

logger = logging.getLogger(__name__)


def decode_if_encoded(body: str) -> str:
    """Return ``body`` decoded from base64 when it looks like a quoted blob.

    The tournée service sometimes answers with a JSON string literal holding
    base64 data instead of a JSON document. This is a heuristic: anything that
    fails to decode is returned unchanged.
    """
    if len(body) < 2 or not (body.startswith('"') and body.endswith('"')):
        return body

    inner = body[1:-1]
    try:
        decoded = base64.b64decode(inner, validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        logger.debug("Quoted body is not base64; using it as plain text")
        return body

    logger.debug("Decoded base64 body (%d bytes)", len(decoded))
    return decoded


__all__ = ["decode_if_encoded"]
