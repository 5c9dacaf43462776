"""Generation config — the immutable per-call input."""

from dataclasses import dataclass

from engine.determinism import normalize_identifier
from engine.errors import InvalidCanvasSize, InvalidIdentifier, InvalidTextField
from security import validate_canvas_size, validate_identifier, validate_text_fields

DEFAULT_CANVAS_SIZE = 800


@dataclass(frozen=True)
class ShardConfig:
    """Everything that can affect a generated document.

    `identifier` is always the canonical 40-char lowercase hex form; build
    instances through `ShardConfig.create` so input is validated first.
    """

    identifier: str
    collection_name: str
    title: str | None = None
    author: str | None = None
    canvas_size: int = DEFAULT_CANVAS_SIZE

    @classmethod
    def create(
        cls,
        identifier: str,
        collection_name: str,
        title: str | None = None,
        author: str | None = None,
        canvas_size: int = DEFAULT_CANVAS_SIZE,
    ) -> "ShardConfig":
        """Validate and normalize input.

        Raises:
            InvalidIdentifier: Empty, non-string or non-hex identifier.
            InvalidCanvasSize: Non-integer or non-positive canvas size.
            InvalidTextField: Non-string collection name, title or author.
        """
        errors = validate_identifier(identifier)
        if errors:
            raise InvalidIdentifier("; ".join(errors))

        errors = validate_canvas_size(canvas_size)
        if errors:
            raise InvalidCanvasSize("; ".join(errors))

        errors = validate_text_fields(collection_name, title, author)
        if errors:
            raise InvalidTextField("; ".join(errors))

        return cls(
            identifier=normalize_identifier(identifier),
            collection_name=collection_name,
            title=title or None,
            author=author or None,
            canvas_size=int(canvas_size),
        )

    @property
    def short_id(self) -> str:
        return self.identifier[:8]
