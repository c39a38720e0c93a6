import pathlib
import sys

import pytest

# Ensure src/ is importable
REPO_ROOT = pathlib.Path(__file__).resolve().parents[2]
SRC_DIR = REPO_ROOT / "src"
sys.path.append(str(SRC_DIR))

import embed_client as ec  # type: ignore


URL = "https://www.google.com/maps/embed/v1/search?q=Louvre&key=K"
ESCAPED_URL = "https://www.google.com/maps/embed/v1/search?q=Louvre&amp;key=K"


def test_iframe_defaults_exact():
    out = ec.EmbedClient("K").generate_iframe(URL)
    assert out == (
        f'<iframe src="{ESCAPED_URL}" width="600" height="450" frameborder="0" '
        'style="border:0" allowfullscreen loading="lazy" '
        'referrerpolicy="no-referrer-when-downgrade"></iframe>'
    )


def test_iframe_override_only_width():
    default = ec.EmbedClient("K").generate_iframe(URL)
    wide = ec.EmbedClient("K").generate_iframe(URL, {"width": "100%"})
    assert 'width="100%"' in wide
    assert 'height="450"' in wide
    assert wide == default.replace('width="600"', 'width="100%"')


def test_iframe_boolean_attributes():
    client = ec.EmbedClient("K")
    out = client.generate_iframe(URL, {"allowFullscreen": False, "data-preview": True})
    assert "allowfullscreen" not in out
    assert out.endswith(" data-preview></iframe>")


def test_iframe_escapes_values_and_url():
    client = ec.EmbedClient("K")
    out = client.generate_iframe('x" onload="alert(1)', {"title": '<b>"map"</b>'})
    assert 'src="x&quot; onload=&quot;alert(1)"' in out
    assert 'title="&lt;b&gt;&quot;map&quot;&lt;/b&gt;"' in out


@pytest.mark.parametrize("name", ['bad name', 'x"y', "src", ""])
def test_iframe_rejects_bad_attribute_names(name):
    with pytest.raises(ec.InvalidOption):
        ec.EmbedClient("K").generate_iframe(URL, {name: "1"})


def test_iframe_accepts_any_url_string():
    out = ec.EmbedClient("").generate_iframe("not a url")
    assert out.startswith('<iframe src="not a url" ')
