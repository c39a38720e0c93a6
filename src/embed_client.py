"""Google Maps Embed API client.

Holds an API key and a validated set of map options, and renders embed URLs
for the five Embed API modes (place, search, view, directions, streetview)
plus the <iframe> tag that displays them.

- Options are validated when they are set, never when a URL is rendered.
- Options live in a frozen snapshot; setters swap in a modified copy, so a
  URL is always built from one consistent set of values.
- No network calls: URL construction only.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple

import embed_urls  # type: ignore


VALID_TRAVEL_MODES = ("driving", "walking", "bicycling", "transit")
VALID_MAP_TYPES = ("roadmap", "satellite")
VALID_UNITS = ("metric", "imperial")
VALID_AVOID = ("tolls", "highways", "ferries")

ZOOM_RANGE = (0, 21)
HEADING_RANGE = (0.0, 360.0)
PITCH_RANGE = (-90.0, 90.0)
FOV_RANGE = (10.0, 100.0)

DEFAULT_IFRAME_ATTRS: Dict[str, Any] = {
    "width": "600",
    "height": "450",
    "frameborder": "0",
    "style": "border:0",
    "allowfullscreen": True,
    "loading": "lazy",
    "referrerpolicy": "no-referrer-when-downgrade",
}

_ATTR_NAME_RE = re.compile(r"^[A-Za-z_:][-A-Za-z0-9_:.]*$")


# ------------------------------
# Errors
# ------------------------------


class EmbedError(ValueError):
    """Base class for embed client errors."""


class InvalidOption(EmbedError):
    def __init__(
        self,
        field: str,
        accepted: str,
        message: str,
        value: Any = None,
        invalid: Sequence[str] = (),
    ) -> None:
        super().__init__(message)
        self.field = field
        self.accepted = accepted
        self.value = value
        self.invalid = tuple(invalid)


class MissingApiKey(EmbedError):
    def __init__(self, message: str = "Google Maps API key is required") -> None:
        super().__init__(message)


# ------------------------------
# Options
# ------------------------------


@dataclass(frozen=True)
class EmbedOptions:
    zoom: int = 12
    map_type: str = "roadmap"
    language: str = ""
    region: str = ""
    heading: float = 0.0
    pitch: float = 0.0
    fov: float = 90.0
    travel_mode: str = "driving"
    avoid: Tuple[str, ...] = ()
    units: str = "metric"


DEFAULT_OPTIONS = EmbedOptions()


def _require_choice(field: str, value: Any, choices: Sequence[str], label: str) -> str:
    if not isinstance(value, str) or value not in choices:
        raise InvalidOption(
            field,
            accepted=", ".join(choices),
            message=f"Invalid {label}. Must be one of: {', '.join(choices)}",
            value=value,
        )
    return value


def _require_degrees(
    field: str, value: Any, bounds: Tuple[float, float], label: str
) -> float:
    lo, hi = bounds
    accepted = f"{embed_urls.format_number(lo)}..{embed_urls.format_number(hi)}"
    message = (
        f"Invalid {label}. Must be between {embed_urls.format_number(lo)} "
        f"and {embed_urls.format_number(hi)} degrees."
    )
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidOption(field, accepted, message, value=value)
    # NaN fails both comparisons
    if not lo <= value <= hi:
        raise InvalidOption(field, accepted, message, value=value)
    return float(value)


# ------------------------------
# Client
# ------------------------------


class EmbedClient:
    """Builds Maps Embed API URLs and iframes from validated options.

    Setters return the client so calls can be chained::

        client = EmbedClient(key).set_zoom(15).set_map_type("satellite")
        url = client.view(47.6062, -122.3321)

    A client instance must not be mutated from several threads at once; each
    generator reads the option snapshot once, but setters are not serialized.
    """

    def __init__(self, api_key: str) -> None:
        self._api_key = api_key
        self._options = DEFAULT_OPTIONS

    # -- option snapshot / key ------------------------------------------------

    @property
    def options(self) -> EmbedOptions:
        return self._options

    @property
    def api_key(self) -> str:
        return self._api_key

    def get_api_key(self) -> str:
        return self._api_key

    def set_api_key(self, api_key: str) -> "EmbedClient":
        self._api_key = api_key
        return self

    def reset(self) -> "EmbedClient":
        """Restore every option to its default value."""
        self._options = DEFAULT_OPTIONS
        return self

    # -- setters ---------------------------------------------------------------

    def set_zoom(self, level: int) -> "EmbedClient":
        """Zoom level 0-21 (0 world, 5 continent, 10 city, 15 streets, 20 buildings)."""
        lo, hi = ZOOM_RANGE
        is_int = isinstance(level, int) and not isinstance(level, bool)
        if not is_int or not lo <= level <= hi:
            raise InvalidOption(
                "zoom",
                accepted=f"{lo}..{hi}",
                message=f"Invalid zoom level. Must be between {lo} and {hi}.",
                value=level,
            )
        self._options = replace(self._options, zoom=level)
        return self

    def set_map_type(self, map_type: str) -> "EmbedClient":
        value = _require_choice("map_type", map_type, VALID_MAP_TYPES, "map type")
        self._options = replace(self._options, map_type=value)
        return self

    def set_units(self, units: str) -> "EmbedClient":
        value = _require_choice("units", units, VALID_UNITS, "units")
        self._options = replace(self._options, units=value)
        return self

    def set_travel_mode(self, mode: str) -> "EmbedClient":
        value = _require_choice("travel_mode", mode, VALID_TRAVEL_MODES, "travel mode")
        self._options = replace(self._options, travel_mode=value)
        return self

    def set_avoid(self, avoid: Iterable[str]) -> "EmbedClient":
        """Features to avoid on directions (tolls, highways, ferries).

        Duplicates are dropped; order of first appearance is kept.
        """
        if isinstance(avoid, str):
            avoid = [avoid]
        items = list(avoid)
        invalid = [a for a in items if a not in VALID_AVOID]
        if invalid:
            raise InvalidOption(
                "avoid",
                accepted=", ".join(VALID_AVOID),
                message="Invalid avoid options: " + ", ".join(str(a) for a in invalid),
                value=items,
                invalid=[str(a) for a in invalid],
            )
        self._options = replace(self._options, avoid=tuple(dict.fromkeys(items)))
        return self

    def set_heading(self, degrees: float) -> "EmbedClient":
        """Street View heading: 0 north, 90 east, 180 south, 270 west."""
        value = _require_degrees("heading", degrees, HEADING_RANGE, "heading")
        self._options = replace(self._options, heading=value)
        return self

    def set_pitch(self, degrees: float) -> "EmbedClient":
        """Street View pitch: -90 straight down, 0 horizontal, 90 straight up."""
        value = _require_degrees("pitch", degrees, PITCH_RANGE, "pitch")
        self._options = replace(self._options, pitch=value)
        return self

    def set_fov(self, degrees: float) -> "EmbedClient":
        """Street View field of view; lower values zoom in."""
        value = _require_degrees("fov", degrees, FOV_RANGE, "field of view")
        self._options = replace(self._options, fov=value)
        return self

    def set_language(self, language: str) -> "EmbedClient":
        self._options = replace(self._options, language=language)
        return self

    def set_region(self, region: str) -> "EmbedClient":
        self._options = replace(self._options, region=region)
        return self

    # -- getters ---------------------------------------------------------------

    def get_zoom(self) -> int:
        return self._options.zoom

    def get_map_type(self) -> str:
        return self._options.map_type

    def get_units(self) -> str:
        return self._options.units

    def get_travel_mode(self) -> str:
        return self._options.travel_mode

    def get_avoid(self) -> Tuple[str, ...]:
        return self._options.avoid

    def get_heading(self) -> float:
        return self._options.heading

    def get_pitch(self) -> float:
        return self._options.pitch

    def get_fov(self) -> float:
        return self._options.fov

    def get_language(self) -> str:
        return self._options.language

    def get_region(self) -> str:
        return self._options.region

    # -- URL generators --------------------------------------------------------

    def place(
        self, place_id: str, extra_params: Optional[Mapping[str, Any]] = None
    ) -> str:
        opts = self._options
        params: Dict[str, Any] = {"q": f"place_id:{place_id}"}
        return self._generate_url("place", params, opts, extra_params)

    def search(self, query: str, extra_params: Optional[Mapping[str, Any]] = None) -> str:
        opts = self._options
        params: Dict[str, Any] = {"q": query}
        return self._generate_url("search", params, opts, extra_params)

    def view(
        self,
        latitude: float,
        longitude: float,
        extra_params: Optional[Mapping[str, Any]] = None,
    ) -> str:
        opts = self._options
        params: Dict[str, Any] = {
            "center": embed_urls.format_latlng(latitude, longitude),
            "zoom": opts.zoom,
            "maptype": opts.map_type,
        }
        return self._generate_url("view", params, opts, extra_params)

    def directions(
        self,
        origin: str,
        destination: str,
        extra_params: Optional[Mapping[str, Any]] = None,
    ) -> str:
        opts = self._options
        params: Dict[str, Any] = {
            "origin": origin,
            "destination": destination,
            "mode": opts.travel_mode,
        }
        if opts.avoid:
            params["avoid"] = "|".join(opts.avoid)
        if opts.units:
            params["units"] = opts.units
        return self._generate_url("directions", params, opts, extra_params)

    def streetview(
        self,
        latitude: float,
        longitude: float,
        extra_params: Optional[Mapping[str, Any]] = None,
    ) -> str:
        opts = self._options
        params: Dict[str, Any] = {
            "location": embed_urls.format_latlng(latitude, longitude),
        }
        # Camera parameters are only sent when they differ from the API defaults.
        if opts.heading != DEFAULT_OPTIONS.heading:
            params["heading"] = opts.heading
        if opts.pitch != DEFAULT_OPTIONS.pitch:
            params["pitch"] = opts.pitch
        if opts.fov != DEFAULT_OPTIONS.fov:
            params["fov"] = opts.fov
        return self._generate_url("streetview", params, opts, extra_params)

    # -- iframe ----------------------------------------------------------------

    def generate_iframe(self, url: str, attrs: Optional[Mapping[str, Any]] = None) -> str:
        """Return the complete <iframe> HTML for `url`.

        `attrs` override the defaults by name (case-insensitive). ``True``
        renders a bare attribute, ``False`` or ``None`` drops it.
        """
        merged: Dict[str, Any] = dict(DEFAULT_IFRAME_ATTRS)
        for key, value in (attrs or {}).items():
            name = str(key)
            if not _ATTR_NAME_RE.match(name) or name.lower() == "src":
                raise InvalidOption(
                    "iframe_attr",
                    accepted="HTML attribute name",
                    message=f"Invalid iframe attribute name: {name!r}",
                    value=key,
                )
            merged[name.lower()] = value

        parts = []
        for name, value in merged.items():
            if isinstance(value, bool) or value is None:
                if value:
                    parts.append(f" {name}")
            else:
                parts.append(f' {name}="{html.escape(str(value), quote=True)}"')

        return f'<iframe src="{html.escape(url, quote=True)}"{"".join(parts)}></iframe>'

    # -- internals -------------------------------------------------------------

    @staticmethod
    def _common_params(opts: EmbedOptions) -> Dict[str, str]:
        common: Dict[str, str] = {}
        if opts.language:
            common["language"] = opts.language
        if opts.region:
            common["region"] = opts.region
        return common

    def _generate_url(
        self,
        mode: str,
        params: Dict[str, Any],
        opts: EmbedOptions,
        extra_params: Optional[Mapping[str, Any]],
    ) -> str:
        api_key = self._api_key
        if not api_key:
            raise MissingApiKey()

        merged: Dict[str, Any] = dict(params)
        merged.update(self._common_params(opts))
        merged.update(extra_params or {})
        # The key is always last and cannot be replaced by extra params.
        merged.pop("key", None)
        merged["key"] = api_key
        return embed_urls.build_embed_url(mode, merged)
