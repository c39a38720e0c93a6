"""Maps Embed API URL assembly.

This module only builds URLs. It does NOT call any Google APIs; the map is
fetched by the browser that renders the iframe.

References:
- Maps Embed API: https://developers.google.com/maps/documentation/embed/embedding-map
"""

from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import quote_plus, urlencode

EMBED_ENDPOINT = "https://www.google.com/maps/embed/v1/"

EMBED_MODES = ("place", "search", "view", "directions", "streetview")


def format_number(value: float) -> str:
    """Render a number the way it should appear in a query string.

    Integral floats drop the trailing ``.0`` (90.0 -> "90"); everything else
    uses the shortest round-tripping representation.
    """
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return repr(value) if isinstance(value, float) else str(value)


def format_latlng(lat: float, lng: float) -> str:
    return f"{format_number(lat)},{format_number(lng)}"


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return format_number(value)
    return str(value)


def build_embed_url(mode: str, params: Mapping[str, Any]) -> str:
    """Return ``https://www.google.com/maps/embed/v1/<mode>?<query>``.

    Parameters are encoded in insertion order so URLs are deterministic.
    """
    if mode not in EMBED_MODES:
        raise ValueError(
            f"Unknown embed mode: {mode!r}. Must be one of: {', '.join(EMBED_MODES)}"
        )
    query = urlencode(
        [(k, _format_value(v)) for k, v in params.items()], quote_via=quote_plus
    )
    return f"{EMBED_ENDPOINT}{mode}?{query}"
