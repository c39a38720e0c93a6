"""Maps Embed admin page: form processing and HTML rendering.

- Reads submitted form fields (a JSON object, one entry per field)
- Saves the API key to the settings store when the settings form is submitted
- Builds the embed URL + iframe with a fresh EmbedClient per submission
- Writes:
    * the rendered admin page (HTML)
    * data/logs/embed_log.jsonl (one record per generation attempt; no API key, no URL)

Errors are returned as values (FormResult.errors) so the page can show them
as notices; nothing is raised for bad user input.

CLI:
    python src/admin_page.py \
      --config config/config.yml \
      --form form.json \
      --output data/admin/maps_embed.html
"""

from __future__ import annotations

import argparse
import datetime as dt
import html
import json
import math
import os
import re
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import config_loader  # type: ignore
import embed_client as ec  # type: ignore
import settings_store as ss  # type: ignore


EMBED_MODE_LABELS: Sequence[Tuple[str, str]] = (
    ("place", "Place"),
    ("search", "Search"),
    ("view", "View"),
    ("directions", "Directions"),
    ("streetview", "Street View"),
)

MAP_TYPE_LABELS = (("roadmap", "Road Map"), ("satellite", "Satellite"))

LANGUAGE_LABELS = (
    ("", "Default"),
    ("en", "English"),
    ("es", "Spanish"),
    ("fr", "French"),
    ("de", "German"),
    ("it", "Italian"),
    ("ja", "Japanese"),
)

TRAVEL_MODE_LABELS = (
    ("driving", "Driving"),
    ("walking", "Walking"),
    ("bicycling", "Bicycling"),
    ("transit", "Transit"),
)

UNITS_LABELS = (("metric", "Metric"), ("imperial", "Imperial"))

AVOID_LABELS = (("tolls", "Tolls"), ("highways", "Highways"), ("ferries", "Ferries"))

# Sample values shown on first load
FORM_DEFAULTS: Dict[str, str] = {
    "embed_mode": "place",
    "zoom": "12",
    "maptype": "roadmap",
    "language": "",
    "place_id": "ChIJN1t_tDeuEmsRUsoyG83frY4",
    "search_query": "Coffee shops in Seattle",
    "latitude": "47.6062",
    "longitude": "-122.3321",
    "origin": "Seattle, WA",
    "destination": "Portland, OR",
    "travel_mode": "driving",
    "units": "metric",
    "sv_latitude": "48.8584",
    "sv_longitude": "2.2945",
    "heading": "0",
    "pitch": "0",
    "fov": "90",
}


# ------------------------------
# Logging (JSONL; thread-safe)
# ------------------------------


class JsonlLogger:
    def __init__(self, path: Optional[str]) -> None:
        self.path = path
        self._lock = threading.Lock()
        if path:
            Path(os.path.dirname(path) or ".").mkdir(parents=True, exist_ok=True)

    def write(self, rec: Dict[str, Any]) -> None:
        if not self.path:
            return
        line = json.dumps(rec, ensure_ascii=False)
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")


# ------------------------------
# Form helpers
# ------------------------------

_TAG_RE = re.compile(r"<[^>]*>")
_OCTET_RE = re.compile(r"%[a-fA-F0-9]{2}")


def collapse_ws(s: str) -> str:
    """Collapse internal whitespace to a single space; strip leading/trailing."""
    return " ".join(s.split())


def sanitize_text_field(value: Any) -> str:
    """Strip tags, percent-encoded octets, line breaks and extra whitespace."""
    if value is None:
        return ""
    s = _TAG_RE.sub("", str(value))
    s = _OCTET_RE.sub("", s)
    return collapse_ws(s)


def _field(form: Mapping[str, Any], name: str) -> str:
    raw = form.get(name)
    if isinstance(raw, (list, tuple)):
        raw = raw[0] if raw else ""
    return sanitize_text_field(raw)


def _field_list(form: Mapping[str, Any], name: str) -> List[str]:
    raw = form.get(name)
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        raw = [raw]
    return [v for v in (sanitize_text_field(r) for r in raw) if v]


def _required(form: Mapping[str, Any], name: str, label: str) -> str:
    value = _field(form, name)
    if not value:
        raise ValueError(f"{label} is required.")
    return value


def _parse_float(form: Mapping[str, Any], name: str, label: str) -> float:
    raw = _required(form, name, label)
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{label} must be a number.") from None
    if not math.isfinite(value):
        raise ValueError(f"{label} must be a number.")
    return value


def _parse_int(form: Mapping[str, Any], name: str, label: str) -> int:
    raw = _required(form, name, label)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{label} must be a whole number.") from None


# ------------------------------
# Processing
# ------------------------------


@dataclass(frozen=True)
class FormResult:
    mode: Optional[str] = None
    url: Optional[str] = None
    embed: Optional[str] = None
    errors: List[str] = field(default_factory=list)
    api_key_saved: bool = False


class AdminPage:
    def __init__(
        self,
        store: ss.SettingsStore,
        embed_log: Optional[JsonlLogger] = None,
        iframe_defaults: Optional[config_loader.IframeDefaults] = None,
    ) -> None:
        self.store = store
        self.embed_log = embed_log or JsonlLogger(None)
        self.iframe_defaults = iframe_defaults or config_loader.IframeDefaults(
            width=ec.DEFAULT_IFRAME_ATTRS["width"],
            height=ec.DEFAULT_IFRAME_ATTRS["height"],
        )

    def process_form(self, form: Mapping[str, Any]) -> FormResult:
        """Handle the settings and embed forms; never raises for bad input."""
        api_key_saved = False
        if "submit_api_key" in form:
            self.store.set_api_key(_field(form, "google_maps_embed_api_key"))
            api_key_saved = True

        api_key = self.store.get_api_key()
        if not api_key or "submit_embed" not in form:
            return FormResult(api_key_saved=api_key_saved)

        mode = _field(form, "embed_mode")
        client = ec.EmbedClient(api_key)
        started = dt.datetime.now(dt.timezone.utc).isoformat()
        try:
            url = self._build_url(client, mode, form)
            width = _field(form, "width") or self.iframe_defaults.width
            height = _field(form, "height") or self.iframe_defaults.height
            embed = client.generate_iframe(url, {"width": width, "height": height})
        except ec.EmbedError as e:
            status = (
                "MISSING_API_KEY" if isinstance(e, ec.MissingApiKey) else "INVALID_OPTION"
            )
            self._log(started, mode, status, str(e))
            return FormResult(mode=mode, errors=[str(e)], api_key_saved=api_key_saved)
        except ValueError as e:
            self._log(started, mode, "INVALID_INPUT", str(e))
            return FormResult(mode=mode, errors=[str(e)], api_key_saved=api_key_saved)

        self._log(started, mode, "OK", "")
        return FormResult(mode=mode, url=url, embed=embed, api_key_saved=api_key_saved)

    def _build_url(
        self, client: ec.EmbedClient, mode: str, form: Mapping[str, Any]
    ) -> str:
        # Options shared by every mode
        if _field(form, "zoom"):
            client.set_zoom(_parse_int(form, "zoom", "Zoom level"))
        if _field(form, "maptype"):
            client.set_map_type(_field(form, "maptype"))
        if _field(form, "language"):
            client.set_language(_field(form, "language"))

        if mode == "place":
            return client.place(_required(form, "place_id", "Place ID"))

        if mode == "search":
            return client.search(_required(form, "search_query", "Search query"))

        if mode == "view":
            return client.view(
                _parse_float(form, "latitude", "Latitude"),
                _parse_float(form, "longitude", "Longitude"),
            )

        if mode == "directions":
            origin = _required(form, "origin", "Origin")
            destination = _required(form, "destination", "Destination")
            if _field(form, "travel_mode"):
                client.set_travel_mode(_field(form, "travel_mode"))
            avoid = _field_list(form, "avoid_routes")
            if avoid:
                client.set_avoid(avoid)
            if _field(form, "units"):
                client.set_units(_field(form, "units"))
            return client.directions(origin, destination)

        if mode == "streetview":
            latitude = _parse_float(form, "sv_latitude", "Latitude")
            longitude = _parse_float(form, "sv_longitude", "Longitude")
            if _field(form, "heading"):
                client.set_heading(_parse_float(form, "heading", "Heading"))
            if _field(form, "pitch"):
                client.set_pitch(_parse_float(form, "pitch", "Pitch"))
            if _field(form, "fov"):
                client.set_fov(_parse_float(form, "fov", "Field of view"))
            return client.streetview(latitude, longitude)

        raise ValueError("Invalid embed mode")

    def _log(self, started: str, mode: str, status: str, error: str) -> None:
        self.embed_log.write(
            {
                "ts": started,
                "embed_mode": mode,
                "status": status,
                "error": error,
            }
        )

    # ------------------------------
    # Rendering
    # ------------------------------

    def render_page(
        self, result: FormResult, form: Optional[Mapping[str, Any]] = None
    ) -> str:
        form = form or {}
        api_key = self.store.get_api_key()

        parts = ['<div class="wrap maps-embed-test">']
        parts.append("<h1>Google Maps Embed API Test</h1>")

        if result.api_key_saved:
            parts.append(_notice("success", "Settings saved."))
        for err in result.errors:
            parts.append(_notice("error", err))

        if not api_key:
            parts.append(
                _notice("warning", "Please enter your Google Maps API key to begin testing.")
            )
            parts.append(self._render_settings_form(api_key))
        else:
            parts.append('<div class="maps-embed-test-container">')
            parts.append('<div class="maps-embed-test-section">')
            parts.append("<h2>Map Embed Generator</h2>")
            parts.append(self._render_embed_form(form, result.mode))
            if result.embed:
                parts.append("<h3>Generated Embed</h3>")
                parts.append(f'<div class="embed-preview">{result.embed}</div>')
                parts.append(
                    '<div class="embed-code"><h4>Embed Code</h4>'
                    '<textarea class="widefat" rows="4" onclick="this.select()">'
                    f"{html.escape(result.embed)}</textarea></div>"
                )
            parts.append("</div></div>")
            parts.append('<div class="maps-embed-test-section">')
            parts.append(self._render_settings_form(api_key))
            parts.append("</div>")

        parts.append("</div>")
        parts.append(_TOGGLE_SCRIPT)
        return "\n".join(parts)

    def _render_settings_form(self, api_key: str) -> str:
        button = "Update Settings" if api_key else "Save Settings"
        return "\n".join(
            [
                "<h2>Settings</h2>",
                '<form method="post" class="maps-embed-form">',
                '<table class="form-table">',
                _row(
                    "google_maps_embed_api_key",
                    "API Key",
                    _text_input(
                        "google_maps_embed_api_key",
                        api_key,
                        "Enter your Google Maps API key...",
                    ),
                    description="Your Google Maps API key. Required for making API requests.",
                ),
                "</table>",
                _submit("submit_api_key", button),
                "</form>",
            ]
        )

    def _render_embed_form(self, form: Mapping[str, Any], mode: Optional[str]) -> str:
        def value(name: str) -> str:
            if name in form:
                return _field(form, name)
            if name == "width":
                return self.iframe_defaults.width
            if name == "height":
                return self.iframe_defaults.height
            return FORM_DEFAULTS.get(name, "")

        selected_mode = mode or value("embed_mode")
        zoom_levels = [(str(i), str(i)) for i in range(ec.ZOOM_RANGE[0], ec.ZOOM_RANGE[1] + 1)]
        avoid_checked = set(_field_list(form, "avoid_routes"))
        avoid_html = "<br>\n".join(
            f'<label><input type="checkbox" name="avoid_routes[]" value="{v}"'
            f'{" checked" if v in avoid_checked else ""}> {label}</label>'
            for v, label in AVOID_LABELS
        )

        rows = [
            _row(
                "embed_mode",
                "Embed Mode",
                _select("embed_mode", EMBED_MODE_LABELS, selected_mode),
            ),
            _row("zoom", "Zoom Level", _select("zoom", zoom_levels, value("zoom")), "view"),
            _row(
                "maptype",
                "Map Type",
                _select("maptype", MAP_TYPE_LABELS, value("maptype")),
                "view",
            ),
            _row(
                "language",
                "Language",
                _select("language", LANGUAGE_LABELS, value("language")),
            ),
            _row(
                "place_id",
                "Place ID",
                _text_input("place_id", value("place_id"), "Enter Google Place ID..."),
                "place",
                "Enter a valid Google Place ID (e.g., ChIJN1t_tDeuEmsRUsoyG83frY4)",
            ),
            _row(
                "search_query",
                "Search Query",
                _text_input("search_query", value("search_query"), "Enter search query..."),
                "search",
            ),
            _row("latitude", "Latitude", _number_input("latitude", value("latitude")), "view"),
            _row("longitude", "Longitude", _number_input("longitude", value("longitude")), "view"),
            _row(
                "origin",
                "Origin",
                _text_input("origin", value("origin"), "Enter starting point..."),
                "directions",
            ),
            _row(
                "destination",
                "Destination",
                _text_input("destination", value("destination"), "Enter destination..."),
                "directions",
            ),
            _row(
                "travel_mode",
                "Travel Mode",
                _select("travel_mode", TRAVEL_MODE_LABELS, value("travel_mode")),
                "directions",
            ),
            _row("units", "Units", _select("units", UNITS_LABELS, value("units")), "directions"),
            _row("avoid_routes", "Avoid", avoid_html, "directions"),
            _row(
                "sv_latitude",
                "Latitude",
                _number_input("sv_latitude", value("sv_latitude")),
                "streetview",
            ),
            _row(
                "sv_longitude",
                "Longitude",
                _number_input("sv_longitude", value("sv_longitude")),
                "streetview",
            ),
            _row(
                "heading",
                "Heading",
                _number_input("heading", value("heading"), bounds=(0, 360)),
                "streetview",
                "Camera heading in degrees (0=North, 90=East, 180=South, 270=West)",
            ),
            _row(
                "pitch",
                "Pitch",
                _number_input("pitch", value("pitch"), bounds=(-90, 90)),
                "streetview",
                "Camera pitch in degrees (-90=straight down, 0=horizontal, 90=straight up)",
            ),
            _row(
                "fov",
                "Field of View",
                _number_input("fov", value("fov"), bounds=(10, 100)),
                "streetview",
                "Field of view in degrees (smaller=more zoom, larger=wider angle)",
            ),
            _row(
                "width",
                "Width",
                _text_input("width", value("width"), "Enter width..."),
                description="Width in pixels or percentage (e.g., 600 or 100%)",
            ),
            _row(
                "height",
                "Height",
                _text_input("height", value("height"), "Enter height..."),
                description="Height in pixels (e.g., 450)",
            ),
        ]
        return "\n".join(
            ['<form method="post" class="maps-embed-form">', '<table class="form-table">']
            + rows
            + ["</table>", _submit("submit_embed", "Generate Embed"), "</form>"]
        )


# ------------------------------
# HTML fragments
# ------------------------------

_TOGGLE_SCRIPT = """<script>
jQuery(document).ready(function ($) {
    function toggleFields() {
        var mode = $('#embed_mode').val();
        $('.embed-mode').hide();
        $('.embed-mode.' + mode).show();
    }
    toggleFields();
    $('#embed_mode').on('change', toggleFields);
});
</script>"""


def _esc(s: Any) -> str:
    return html.escape(str(s), quote=True)


def _notice(kind: str, message: str) -> str:
    return f'<div class="notice notice-{kind}"><p>{_esc(message)}</p></div>'


def _row(
    name: str,
    label: str,
    control: str,
    mode_class: Optional[str] = None,
    description: Optional[str] = None,
) -> str:
    tr = f'<tr class="embed-mode {mode_class}">' if mode_class else "<tr>"
    desc = f'<p class="description">{_esc(description)}</p>' if description else ""
    return (
        f'{tr}<th scope="row"><label for="{name}">{_esc(label)}</label></th>'
        f"<td>{control}{desc}</td></tr>"
    )


def _select(name: str, options: Sequence[Tuple[str, str]], selected: str) -> str:
    opts = "".join(
        f'<option value="{_esc(v)}"{" selected" if v == selected else ""}>{_esc(label)}</option>'
        for v, label in options
    )
    return f'<select name="{name}" id="{name}" class="regular-text">{opts}</select>'


def _text_input(name: str, value: str, placeholder: str) -> str:
    return (
        f'<input type="text" name="{name}" id="{name}" class="regular-text" '
        f'value="{_esc(value)}" placeholder="{_esc(placeholder)}">'
    )


def _number_input(
    name: str, value: str, bounds: Optional[Tuple[int, int]] = None
) -> str:
    limits = f' min="{bounds[0]}" max="{bounds[1]}" step="1"' if bounds else ' step="any"'
    return (
        f'<input type="number" name="{name}" id="{name}" class="regular-text" '
        f'value="{_esc(value)}"{limits}>'
    )


def _submit(name: str, label: str) -> str:
    return (
        f'<p class="submit"><input type="submit" name="{name}" id="{name}" '
        f'class="button button-primary" value="{_esc(label)}"></p>'
    )


# ------------------------------
# Orchestration
# ------------------------------


def _read_form(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    with open(path, "r", encoding="utf-8") as f:
        obj = json.load(f)
    if not isinstance(obj, dict):
        raise ValueError(f"Form file must contain a JSON object: {path}")
    # Array-style "avoid_routes[]" field names map onto the plain name
    return {k[:-2] if k.endswith("[]") else k: v for k, v in obj.items()}


def run_admin_page(
    config_path: str,
    output_html_path: str,
    form_path: Optional[str] = None,
    log_path: Optional[str] = None,
) -> FormResult:
    """Process a submitted form (if any) and write the rendered admin page."""
    cfg = config_loader.load_config(config_path)
    store = ss.store_from_config(cfg)

    if not store.get_api_key() and cfg.api.get_google_maps_api_key():
        print(
            f"WARNING: no API key stored; {cfg.api.google_maps_api_key_env} is set, "
            "run settings_store.py --from-env to store it.",
            flush=True,
        )

    page = AdminPage(
        store,
        embed_log=JsonlLogger(log_path or cfg.logging.embed_log_path),
        iframe_defaults=cfg.iframe,
    )
    form = _read_form(form_path)
    result = page.process_form(form)

    Path(os.path.dirname(output_html_path) or ".").mkdir(parents=True, exist_ok=True)
    with open(output_html_path, "w", encoding="utf-8") as f:
        f.write(page.render_page(result, form))

    for err in result.errors:
        print(f"WARNING: {err}", flush=True)
    return result


def main() -> None:
    parser = argparse.ArgumentParser(description="Render the Maps Embed admin page.")
    parser.add_argument("--config", required=True, help="Path to config/config.yml")
    parser.add_argument(
        "--form",
        required=False,
        default=None,
        help="Path to a JSON object of submitted form fields (omit for the initial page)",
    )
    parser.add_argument(
        "--output",
        required=False,
        default="data/admin/maps_embed.html",
        help="Path to write the HTML page (default: data/admin/maps_embed.html)",
    )
    parser.add_argument(
        "--log",
        required=False,
        default=None,
        help="Path to JSONL embed log (default: logging.embed_log_path from config)",
    )
    args = parser.parse_args()

    result = run_admin_page(
        config_path=args.config,
        output_html_path=args.output,
        form_path=args.form,
        log_path=args.log,
    )
    if result.url:
        print(f"Generated {result.mode} embed -> {args.output}")
    else:
        print(f"Rendered admin page -> {args.output}")


if __name__ == "__main__":
    main()
