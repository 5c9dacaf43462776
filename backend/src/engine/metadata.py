"""Token metadata — the JSON document handed to minting and storage collaborators."""

from engine.config import ShardConfig
from engine.traits import Trait

SYMBOL = "COMSHARD"
NAME_PREFIX = "Commit Shard"
COMMIT_URL = "https://github.com/{repo}/commit/{sha}"


def token_name(config: ShardConfig) -> str:
    return f"{NAME_PREFIX} · {config.short_id}"


def external_url(config: ShardConfig) -> str | None:
    """Commit page for 'owner/repo' collection names; None for anything else."""
    parts = config.collection_name.split("/")
    if len(parts) != 2 or not all(parts):
        return None
    return COMMIT_URL.format(repo=config.collection_name, sha=config.identifier)


def build_metadata(
    config: ShardConfig, traits: list[Trait], image_uri: str | None = None
) -> dict:
    """Build token metadata.

    Args:
        config: The config the piece was generated from.
        traits: Output of engine.traits.extract_traits for the same config.
        image_uri: Where the document was stored, if it was. Used for both
                   `image` and `animation_url` since the SVG is animated.

    Returns:
        JSON-serializable dict.
    """
    attributes = [
        {"trait_type": "Commit", "value": config.short_id},
        {"trait_type": "Repo", "value": config.collection_name},
    ]
    if config.author:
        attributes.append({"trait_type": "Author", "value": config.author})
    attributes.extend(t.as_attribute() for t in traits)

    meta = {
        "name": token_name(config),
        "symbol": SYMBOL,
        "description": (
            f"{NAME_PREFIX} — generative crystal art from {config.short_id}"
        ),
        "attributes": attributes,
    }
    if image_uri:
        meta["image"] = image_uri
        meta["animation_url"] = image_uri
        meta["properties"] = {
            "files": [{"uri": image_uri, "type": "image/svg+xml"}],
            "category": "image",
        }
    url = external_url(config)
    if url:
        meta["external_url"] = url
    return meta
