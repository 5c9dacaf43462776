"""Tests for the color model and number formatting."""

import pytest

from engine.determinism import ShardRNG, identifier_bytes, make_rng
from engine.palette import (
    ANALOGOUS,
    COMPLEMENTARY,
    REPO_HUES,
    build_palette,
    hsla,
    repo_key,
)
from engine.svg import fmt, fmt_points, path_d, text

pytestmark = pytest.mark.smoke

ZERO_SHA = "0" * 40


@pytest.mark.parametrize("repo,hue", sorted(REPO_HUES.items()))
def test_known_repo_overrides_hash_hue(repo, hue):
    data = identifier_bytes(ZERO_SHA)
    palette = build_palette(data, f"some-org/{repo}", make_rng(data))
    assert palette.base_hue == hue
    assert palette.repo_key == repo


def test_known_repo_match_is_case_insensitive():
    data = identifier_bytes(ZERO_SHA)
    palette = build_palette(data, "Anza-XYZ/Agave", make_rng(data))
    assert palette.base_hue == 160


def test_unknown_repo_uses_hash_hue():
    data = identifier_bytes("0168" + "0" * 36)  # 0x0168 = 360
    palette = build_palette(data, "someone/else", make_rng(data))
    assert palette.base_hue == 0
    assert palette.repo_key is None

    data = identifier_bytes("01a4" + "0" * 36)  # 0x01a4 = 420
    palette = build_palette(data, "", make_rng(data))
    assert palette.base_hue == 60


def test_base_saturation_from_third_byte():
    data = identifier_bytes("0000" + "2a" + "0" * 34)  # 42 % 35 = 7
    palette = build_palette(data, "x/y", make_rng(data))
    assert palette.base_sat == 62


def test_accent_draw_is_single_first_draw():
    data = identifier_bytes(ZERO_SHA)
    rng = make_rng(data)
    palette = build_palette(data, "x/y", rng)
    assert rng.draws == 2

    reference = ShardRNG(1)
    analogous = reference.next() > 0.5
    assert palette.accent_mode == (ANALOGOUS if analogous else COMPLEMENTARY)


def test_accent_ranges():
    for i in range(200):
        sha = f"{i:08x}" + "0" * 32
        data = identifier_bytes(sha)
        p = build_palette(data, "x/y", make_rng(data))
        delta = (p.accent_hue - p.base_hue) % 360
        if p.accent_mode == ANALOGOUS:
            assert 30 <= delta <= 50
        else:
            assert 150 <= delta <= 210
        assert 0 <= p.accent_hue < 360


def test_background_hue_is_opposite():
    data = identifier_bytes(ZERO_SHA)
    p = build_palette(data, "solana-labs/solana", make_rng(data))
    assert p.background_hue == 350


def test_repo_key_last_segment():
    assert repo_key("metaplex-foundation/Metaplex") == "metaplex"
    assert repo_key("anchor") == "anchor"


def test_hsla_formatting():
    assert hsla(359.6, 55.4, 40.5, 0.12345) == "hsla(0, 55%, 40%, 0.123)"
    assert hsla(-10, 120, -5, 2) == "hsla(350, 100%, 0%, 1.000)"


def test_fmt_normalizes_negative_zero():
    assert fmt(-0.04) == "0.0"
    assert fmt(-0.0) == "0.0"
    assert fmt(-0.06) == "-0.1"
    assert fmt(1.25, 2) == "1.25"


def test_point_and_path_formatting():
    pts = [(1.0, 2.04), (3.26, -4.0)]
    assert fmt_points(pts) == "1.0,2.0 3.3,-4.0"
    assert path_d([(0, 0), (1, 1), (2, 0)]) == "M0.0,0.0 L1.0,1.0 L2.0,0.0"


def test_text_is_escaped():
    assert text("a < b & c") == "a &lt; b &amp; c"
