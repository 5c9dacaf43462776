"""Tests for the generate() entry point."""

import hashlib
import os
import subprocess
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from engine.errors import (
    InvalidCanvasSize,
    InvalidIdentifier,
    InvalidTextField,
    ShardConfigError,
)
from engine.generator import GenerationResult, generate

pytestmark = pytest.mark.smoke

SHA = "3f9a2c71d0b84e6fa15c9e07b2d4a8f16c0e5b93"
REPO = "anza-xyz/agave"


def test_returns_document_and_traits():
    result = generate(SHA, REPO, title="Fix rent", author="octocat")
    assert isinstance(result, GenerationResult)
    assert result.document.startswith("<svg")
    assert result.document.rstrip().endswith("</svg>")
    first = result.traits_as_dicts()[0]
    assert first == {"name": "Formation", "value": result.traits[0].value}


def test_two_calls_are_byte_identical():
    a = generate(SHA, REPO, title="t", author="a", canvas_size=640)
    b = generate(SHA, REPO, title="t", author="a", canvas_size=640)
    assert a.document == b.document
    assert a.traits == b.traits


def test_different_identifiers_differ():
    a = generate(SHA, REPO)
    b = generate("4" + SHA[1:], REPO)
    assert a.document != b.document


def test_padding_equivalence():
    padded = "abc123" + "0" * 34
    assert generate("abc123", REPO).document == generate(padded, REPO).document


def test_truncation_equivalence():
    long_id = SHA + "0123456789"
    assert generate(long_id, REPO).document == generate(SHA, REPO).document


def test_truncation_equivalence_very_long_identifier():
    long_id = SHA + "0" * 260
    assert generate(long_id, REPO).document == generate(SHA, REPO).document


def test_case_insensitive_identifier():
    assert generate(SHA.upper(), REPO).document == generate(SHA, REPO).document


def test_known_repo_hue_for_zero_identifier():
    result = generate("0" * 40, "solana-labs/solana")
    # Background is the base hue's opposite: 170 + 180
    assert 'fill="hsla(350, 12%, 2%, 1.000)"' in result.document
    values = {t.name: t.value for t in result.traits}
    assert values["Lineage"] == "Solana"


@pytest.mark.parametrize("bad", ["zzzz", "", "0xabc", "abc 123", None, 1234])
def test_invalid_identifier_rejected(bad):
    with pytest.raises(InvalidIdentifier):
        generate(bad, REPO)


@pytest.mark.parametrize("size", [0, -1, -800, 12.5, "800", True])
def test_invalid_canvas_size_rejected(size):
    with pytest.raises(InvalidCanvasSize):
        generate(SHA, REPO, canvas_size=size)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"collection_name": None},
        {"collection_name": 42},
        {"collection_name": "a/b", "title": 1},
        {"collection_name": "a/b", "author": ["x"]},
    ],
)
def test_non_string_text_fields_rejected(kwargs):
    with pytest.raises(InvalidTextField):
        generate(SHA, **kwargs)


def test_empty_collection_name_is_kept_verbatim():
    result = generate(SHA, "")
    values = {t.name: t.value for t in result.traits}
    assert values["Lineage"] == "Independent"


def test_config_errors_are_value_errors():
    assert issubclass(InvalidIdentifier, ShardConfigError)
    assert issubclass(InvalidTextField, ShardConfigError)
    assert issubclass(ShardConfigError, ValueError)


def test_tiny_canvas_still_renders():
    result = generate(SHA, REPO, canvas_size=1)
    assert 'viewBox="0 0 1 1"' in result.document


def test_empty_title_and_author_are_omitted():
    doc = generate(SHA, REPO, title="", author="").document
    assert doc.count("<text ") == 1
    assert ">3f9a2c71</text>" in doc


def test_concurrent_generation_matches_sequential():
    shas = [f"{i:040x}" for i in range(1, 17)]
    sequential = [generate(s, REPO).document for s in shas]
    with ThreadPoolExecutor(max_workers=4) as pool:
        parallel = list(pool.map(lambda s: generate(s, REPO).document, shas))
    assert parallel == sequential


DIGEST_CASES = [
    (SHA, REPO),
    ("0" * 40, "solana-labs/solana"),
    ("deadbeef" * 5, "someone/project"),
]

_DIGEST_SCRIPT = """
import hashlib, sys
from engine.generator import generate
doc = generate(sys.argv[1], sys.argv[2]).document
print(hashlib.sha256(doc.encode("utf-8")).hexdigest())
"""


def _digest(identifier: str, repo: str) -> str:
    doc = generate(identifier, repo).document
    return hashlib.sha256(doc.encode("utf-8")).hexdigest()


def _digest_in_subprocess(identifier: str, repo: str, hash_seed: str) -> str:
    src_dir = Path(__file__).resolve().parents[2] / "src"
    env = dict(os.environ, PYTHONPATH=str(src_dir), PYTHONHASHSEED=hash_seed)
    result = subprocess.run(
        [sys.executable, "-c", _DIGEST_SCRIPT, identifier, repo],
        capture_output=True,
        text=True,
        timeout=60,
        env=env,
    )
    assert result.returncode == 0, result.stderr
    return result.stdout.strip()


@pytest.mark.parametrize("identifier,repo", DIGEST_CASES)
def test_document_digest_is_stable_across_processes(identifier, repo):
    expected = _digest(identifier, repo)
    assert len(expected) == 64
    for hash_seed in ("1", "4242"):
        assert _digest_in_subprocess(identifier, repo, hash_seed) == expected


def test_document_digests_differ_between_cases():
    digests = {_digest(identifier, repo) for identifier, repo in DIGEST_CASES}
    assert len(digests) == len(DIGEST_CASES)
