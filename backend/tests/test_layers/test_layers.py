"""Tests for individual layer composition and rendering."""

import typing

import pytest

from engine.config import ShardConfig
from engine.determinism import ShardRNG
from engine.geometry import Shard, build_crystal
from layers import caption, cracks, gradients, nebula, particles, shards, starfield

pytestmark = pytest.mark.smoke


@pytest.fixture
def crystal():
    return build_crystal(
        ShardConfig.create("3f9a2c71d0b84e6fa15c9e07b2d4a8f16c0e5b93", "anza-xyz/agave")
    )


def test_star_count_and_bounds(crystal):
    stars = starfield.compose(ShardRNG(5), crystal)
    assert 80 <= len(stars) <= 140
    for s in stars:
        assert 0 <= s.x <= crystal.size
        assert 0 <= s.y <= crystal.size
        assert 0.3 <= s.r <= 1.8


def test_untinted_stars_are_white(crystal):
    stars = starfield.compose(ShardRNG(5), crystal)
    for s in stars:
        if s.sat == 0:
            assert s.hue == 0


def test_nebula_cloud_count(crystal):
    clouds = nebula.compose(ShardRNG(9), crystal)
    assert 5 <= len(clouds) <= 8
    assert clouds[-1].rx == pytest.approx(crystal.size * 0.1)


def test_one_gradient_per_shard(crystal):
    grads = gradients.compose(ShardRNG(3), crystal)
    assert [g.index for g in grads] == list(range(len(crystal.shards)))
    markup = gradients.render(grads, crystal)
    assert markup.count("<linearGradient") == len(crystal.shards)
    assert markup.count("<stop ") == 4 * len(crystal.shards)


def test_shard_sprites_reference_their_gradient(crystal):
    sprites = shards.compose(ShardRNG(3), crystal)
    markup = shards.render(sprites, crystal)
    for i in range(len(crystal.shards)):
        assert f"url(#sg{i})" in markup
    assert markup.startswith('<g filter="url(#shardGlow)">')


def test_shard_sprites_wrap_geometry_shards(crystal):
    sprites = shards.compose(ShardRNG(3), crystal)
    assert typing.get_type_hints(shards.ShardSprite)["shard"] is Shard
    assert all(isinstance(sp.shard, Shard) for sp in sprites)
    assert [sp.shard for sp in sprites] == crystal.shards


def test_cracks_start_and_end_on_apexes(crystal):
    for crack in cracks.compose(ShardRNG(11), crystal):
        assert crack.points[0] in {s.apex for s in crystal.shards}
        assert crack.points[-1] in {s.apex for s in crystal.shards}
        assert 5 <= len(crack.points) <= 9


def test_particles_stay_in_annulus(crystal):
    for p in particles.compose(ShardRNG(13), crystal):
        dist = ((p.x - crystal.cx) ** 2 + (p.y - crystal.cy) ** 2) ** 0.5
        assert crystal.size * 0.05 - 1e-9 <= dist <= crystal.size * 0.45 + 1e-9


def test_caption_lines(crystal):
    lines = caption.compose(ShardRNG(1), crystal)
    assert [line.text for line in lines] == ["3f9a2c71"]


def test_caption_text_helper():
    assert caption.caption_text("deadbeef", None) == "deadbeef"
    assert caption.caption_text("deadbeef", "a" * 50) == "deadbeef · " + "a" * 45
