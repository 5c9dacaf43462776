"""Security validation gates for Commit Shards."""

import json
import os
import re
import string
from pathlib import Path

# Export batch cap
MAX_BATCH_SIZE = 500

_HEX_DIGITS = frozenset(string.hexdigits)


def validate_identifier(identifier) -> list[str]:
    """Validate a hex identifier. Returns list of errors (empty = valid).

    Checks:
    - Is a string
    - Not empty
    - Hex digits only (no 0x prefix, no whitespace)

    Any length is accepted; only the first 40 characters are significant.
    """
    errors: list[str] = []

    if not isinstance(identifier, str):
        errors.append(
            f"Identifier must be a string, got {type(identifier).__name__}"
        )
        return errors

    if not identifier:
        errors.append("Identifier must not be empty")
        return errors

    bad = sorted({c for c in identifier if c not in _HEX_DIGITS})
    if bad:
        errors.append(f"Identifier is not hexadecimal (bad characters: {''.join(bad)!r})")

    return errors


def validate_text_fields(collection_name, title=None, author=None) -> list[str]:
    """Validate the caption/lineage strings. Title and author may be None."""
    errors: list[str] = []
    if not isinstance(collection_name, str):
        errors.append(
            f"collection_name must be a string, got {type(collection_name).__name__}"
        )
    for key, value in (("title", title), ("author", author)):
        if value is not None and not isinstance(value, str):
            errors.append(f"{key} must be a string, got {type(value).__name__}")
    return errors


def validate_canvas_size(size) -> list[str]:
    """Validate canvas size. Returns list of errors."""
    errors: list[str] = []
    if isinstance(size, bool) or not isinstance(size, int):
        errors.append(f"Canvas size must be an integer, got {type(size).__name__}")
    elif size <= 0:
        errors.append(f"Canvas size must be positive, got {size}")
    return errors


def validate_batch_size(items: list) -> list[str]:
    """Validate export batch length against MAX_BATCH_SIZE. Returns list of errors."""
    errors: list[str] = []
    if not items:
        errors.append("Export batch is empty")
    elif len(items) > MAX_BATCH_SIZE:
        errors.append(f"Export batch {len(items)} exceeds maximum {MAX_BATCH_SIZE}")
    return errors


BLOCKED_OUTPUT_PREFIXES = (
    "/System",
    "/Library",
    "/usr",
    "/bin",
    "/sbin",
    "/etc",
    "/private/var",
    "/private/etc",
)


def validate_output_dir(path: str) -> list[str]:
    """Validate an export output directory. Returns list of errors (empty = valid).

    Checks:
    - Path is absolute
    - Not a system directory
    - Directory exists and is writable
    """
    errors: list[str] = []
    p = Path(path)

    if not p.is_absolute():
        errors.append("Output path must be absolute")
        return errors

    resolved = str(p.resolve())
    for prefix in BLOCKED_OUTPUT_PREFIXES:
        if resolved.startswith(prefix):
            errors.append(f"Cannot write to system directory: {prefix}")
            return errors

    if not p.exists():
        errors.append(f"Output directory does not exist: {p}")
    elif not p.is_dir():
        errors.append(f"Output path is not a directory: {p}")
    elif not os.access(str(p), os.W_OK):
        errors.append(f"Output directory is not writable: {p}")

    return errors


# --- PII stripping for Sentry and crash dumps ---

_HOME = os.path.expanduser("~")
_USERNAME = os.path.basename(_HOME)
_PATH_PATTERN = re.compile(r"/Users/[^/\s]+|/home/[^/\s]+|C:\\Users\\[^\\\s]+")
_SENSITIVE_KEYS = {"_token", "token", "auth", "key", "secret", "password", "dsn"}


def _scrub_dict(d: dict):
    """Redact values for keys that look sensitive."""
    for key in list(d.keys()):
        if any(s in key.lower() for s in _SENSITIVE_KEYS):
            d[key] = "<REDACTED>"


def strip_pii(event: dict, hint: dict) -> dict:
    """Sentry before_send hook. Strips file paths and auth tokens.

    Also usable for crash dump sanitization.
    """
    event_str = json.dumps(event)
    event_str = event_str.replace(_HOME, "<HOME>")
    if _USERNAME:
        event_str = event_str.replace(_USERNAME, "<USER>")
    event_str = _PATH_PATTERN.sub("<REDACTED_PATH>", event_str)
    event = json.loads(event_str)

    _scrub_dict(event.get("extra", {}))
    for ctx in event.get("contexts", {}).values():
        if isinstance(ctx, dict):
            _scrub_dict(ctx)
    return event
