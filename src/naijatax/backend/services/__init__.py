"""Request and response helpers shared by the Flask blueprints."""

from .request_parser import (
    parse_flag,
    parse_json_payload,
    parse_period_args,
    parse_request_model,
)
from .response_builder import build_response

__all__ = [
    "build_response",
    "parse_flag",
    "parse_json_payload",
    "parse_period_args",
    "parse_request_model",
]
