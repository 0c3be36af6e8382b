"""Utilities for serialising engine results into responses."""

from __future__ import annotations

from typing import Any, Tuple

from flask import jsonify

from naijatax.backend.app.models import to_payload

ResponseTuple = Tuple[Any, int]


def build_response(result: Any, status: int = 200) -> ResponseTuple:
    """Return a Flask JSON response for a domain ``result``."""

    return jsonify(to_payload(result)), status
