"""Shared API dependencies."""

from typing import Optional

from fastapi import Request

from lpbridge.codec import parse_options
from lpbridge.errors import InvalidOptions
from lpbridge.factory import BridgeDomain


def get_domain(request: Request) -> BridgeDomain:
    """The domain served by this app."""
    return request.app.state.domain


def options_from_hex(value: Optional[str]) -> bytes:
    """Decode ``0x``-prefixed hex messaging options."""
    if not value or value in ("0x", "0X"):
        return b""
    try:
        raw = bytes.fromhex(value[2:] if value.lower().startswith("0x") else value)
    except ValueError:
        raise InvalidOptions(f"Options are not valid hex: {value!r}")
    parse_options(raw)
    return raw
