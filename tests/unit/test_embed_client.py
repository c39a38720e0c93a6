import pathlib
import sys

import pytest

# Ensure src/ is importable
REPO_ROOT = pathlib.Path(__file__).resolve().parents[2]
SRC_DIR = REPO_ROOT / "src"
sys.path.append(str(SRC_DIR))

import embed_client as ec  # type: ignore


PLACE_ID = "ChIJN1t_tDeuEmsRUsoyG83frY4"


def query_of(url):
    assert "?" in url
    return url.split("?", 1)[1].split("&")


@pytest.mark.parametrize("level", [0, 1, 12, 20, 21])
def test_zoom_accepts_range(level):
    client = ec.EmbedClient("K")
    assert client.set_zoom(level) is client
    assert client.get_zoom() == level


@pytest.mark.parametrize("level", [-1, 22, 100, 12.5, "12", True])
def test_zoom_rejects_outside_range_and_keeps_prior(level):
    client = ec.EmbedClient("K").set_zoom(7)
    with pytest.raises(ec.InvalidOption) as exc:
        client.set_zoom(level)
    assert exc.value.field == "zoom"
    assert client.get_zoom() == 7


@pytest.mark.parametrize(
    "setter,field,good,bad",
    [
        ("set_heading", "heading", [0, 90, 359.5, 360], [-0.1, 360.1, float("nan")]),
        ("set_pitch", "pitch", [-90, 0, 45.5, 90], [-90.5, 91]),
        ("set_fov", "fov", [10, 55.5, 100], [9.99, 100.01, 0]),
    ],
)
def test_camera_ranges(setter, field, good, bad):
    client = ec.EmbedClient("K")
    for value in good:
        getattr(client, setter)(value)
        assert getattr(client.options, field) == float(value)

    prior = getattr(client.options, field)
    for value in bad:
        with pytest.raises(ec.InvalidOption) as exc:
            getattr(client, setter)(value)
        assert exc.value.field == field
        assert getattr(client.options, field) == prior


@pytest.mark.parametrize(
    "setter,getter,valid,invalid",
    [
        ("set_map_type", "get_map_type", ["roadmap", "satellite"], ["terrain", "ROADMAP", ""]),
        ("set_units", "get_units", ["metric", "imperial"], ["miles"]),
        (
            "set_travel_mode",
            "get_travel_mode",
            ["driving", "walking", "bicycling", "transit"],
            ["flying", None],
        ),
    ],
)
def test_enum_setters(setter, getter, valid, invalid):
    client = ec.EmbedClient("K")
    for value in valid:
        getattr(client, setter)(value)
        assert getattr(client, getter)() == value
    for value in invalid:
        with pytest.raises(ec.InvalidOption):
            getattr(client, setter)(value)
        # Last accepted value survives
        assert getattr(client, getter)() == valid[-1]


def test_avoid_names_invalid_entries():
    client = ec.EmbedClient("K").set_avoid(["highways"])
    with pytest.raises(ec.InvalidOption) as exc:
        client.set_avoid(["tolls", "bogus"])
    assert exc.value.field == "avoid"
    assert exc.value.invalid == ("bogus",)
    assert "bogus" in str(exc.value)
    assert client.get_avoid() == ("highways",)

    client.set_avoid(["tolls", "ferries"])
    assert client.get_avoid() == ("tolls", "ferries")


def test_unvalidated_setters_and_reset():
    client = (
        ec.EmbedClient("K")
        .set_language("xx-anything")
        .set_region("ZZ")
        .set_zoom(3)
        .set_avoid(["tolls"])
    )
    assert client.get_language() == "xx-anything"
    assert client.get_region() == "ZZ"

    assert client.reset() is client
    assert client.options == ec.EmbedOptions()
    assert client.options.zoom == 12
    assert client.options.map_type == "roadmap"
    assert client.options.fov == 90
    assert client.options.avoid == ()
    # Reset leaves the key alone
    assert client.api_key == "K"


def test_place_url():
    url = ec.EmbedClient("K").place(PLACE_ID)
    assert url.startswith("https://www.google.com/maps/embed/v1/place?")
    params = query_of(url)
    assert f"q=place_id%3A{PLACE_ID}" in params
    assert params[-1] == "key=K"
    assert "zoom=" not in url
    assert "maptype=" not in url


def test_search_url_encodes_query():
    url = ec.EmbedClient("K").search("Coffee shops in Seattle")
    assert url == (
        "https://www.google.com/maps/embed/v1/search?q=Coffee+shops+in+Seattle&key=K"
    )


def test_view_url_defaults():
    url = ec.EmbedClient("K").view(47.6062, -122.3321)
    assert url == (
        "https://www.google.com/maps/embed/v1/view?"
        "center=47.6062%2C-122.3321&zoom=12&maptype=roadmap&key=K"
    )


def test_common_params_follow_mode_params():
    client = ec.EmbedClient("K").set_language("fr").set_region("FR")
    url = client.search("Louvre")
    assert query_of(url) == ["q=Louvre", "language=fr", "region=FR", "key=K"]


def test_streetview_sparse_camera_params():
    client = ec.EmbedClient("K")
    url = client.streetview(48.8584, 2.2945)
    assert query_of(url) == ["location=48.8584%2C2.2945", "key=K"]

    client.set_heading(90)
    params = query_of(client.streetview(48.8584, 2.2945))
    assert "heading=90" in params
    assert not any(p.startswith("pitch=") or p.startswith("fov=") for p in params)

    client.set_pitch(-10.5).set_fov(60)
    params = query_of(client.streetview(48.8584, 2.2945))
    assert params[:4] == [
        "location=48.8584%2C2.2945",
        "heading=90",
        "pitch=-10.5",
        "fov=60",
    ]

    # Explicitly setting the defaults again drops them from the URL
    client.set_heading(0).set_pitch(0).set_fov(90)
    assert query_of(client.streetview(48.8584, 2.2945)) == [
        "location=48.8584%2C2.2945",
        "key=K",
    ]


def test_directions_avoid_and_units():
    client = ec.EmbedClient("K")
    url = client.directions("A", "B")
    assert query_of(url) == [
        "origin=A",
        "destination=B",
        "mode=driving",
        "units=metric",
        "key=K",
    ]
    assert "avoid=" not in url

    client.set_avoid(["tolls", "ferries"]).set_travel_mode("transit").set_units("imperial")
    params = query_of(client.directions("Seattle, WA", "Portland, OR"))
    assert "avoid=tolls%7Cferries" in params
    assert "mode=transit" in params
    assert "units=imperial" in params
    assert "origin=Seattle%2C+WA" in params


def test_extra_params_override_but_key_is_last():
    client = ec.EmbedClient("K").set_language("en")
    url = client.view(1.5, 2.5, {"zoom": 3, "language": "de", "key": "HIJACK"})
    params = query_of(url)
    assert "zoom=3" in params
    assert "language=de" in params
    assert params[-1] == "key=K"
    assert "HIJACK" not in url


def test_missing_api_key_is_raised_lazily():
    client = ec.EmbedClient("")
    generators = [
        lambda: client.place(PLACE_ID),
        lambda: client.search("x"),
        lambda: client.view(1, 2),
        lambda: client.directions("A", "B"),
        lambda: client.streetview(1, 2),
    ]
    for gen in generators:
        with pytest.raises(ec.MissingApiKey):
            gen()

    client.set_api_key("K")
    assert client.get_api_key() == "K"
    for gen in generators:
        assert gen().endswith("key=K")


def test_options_snapshot_is_not_mutated_by_later_setters():
    client = ec.EmbedClient("K")
    before = client.options
    client.set_zoom(5).set_avoid(["tolls"])
    assert before.zoom == 12
    assert before.avoid == ()
    assert client.options.zoom == 5


def test_errors_share_a_base_class():
    assert issubclass(ec.InvalidOption, ec.EmbedError)
    assert issubclass(ec.MissingApiKey, ec.EmbedError)
    assert issubclass(ec.EmbedError, ValueError)
