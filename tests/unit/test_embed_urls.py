import pathlib
import sys

import pytest

# Ensure src/ is importable
REPO_ROOT = pathlib.Path(__file__).resolve().parents[2]
SRC_DIR = REPO_ROOT / "src"
sys.path.append(str(SRC_DIR))

import embed_urls  # type: ignore


def test_format_number():
    assert embed_urls.format_number(90.0) == "90"
    assert embed_urls.format_number(-0.5) == "-0.5"
    assert embed_urls.format_number(12) == "12"
    assert embed_urls.format_number(47.6062) == "47.6062"
    assert embed_urls.format_latlng(48.8584, 2.2945) == "48.8584,2.2945"


def test_build_embed_url_keeps_insertion_order():
    url = embed_urls.build_embed_url(
        "directions",
        {"origin": "A B", "destination": "C", "avoid": "tolls|ferries", "flag": True},
    )
    assert url == (
        "https://www.google.com/maps/embed/v1/directions?"
        "origin=A+B&destination=C&avoid=tolls%7Cferries&flag=true"
    )


def test_build_embed_url_unknown_mode():
    with pytest.raises(ValueError):
        embed_urls.build_embed_url("satellite", {"q": "x"})
