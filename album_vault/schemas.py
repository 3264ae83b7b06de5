"""Schema validation for the library document held by the remote store."""

from __future__ import annotations

from typing import Any, Dict, Optional

from jsonschema import Draft202012Validator

from album_vault.errors import DocumentFormatError

LIBRARY_DOCUMENT_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "id": {"type": ["string", "integer"]},
        "data": {
            "type": ["array", "null"],
            "items": {"$ref": "#/$defs/album"},
        },
    },
    "$defs": {
        "image": {
            "type": "object",
            "required": ["id"],
            "properties": {
                "id": {"type": ["string", "integer"]},
                "name": {"type": "string"},
                "url": {"type": "string"},
                "size": {"type": "string"},
                "sizeLabel": {"type": "string"},
                "timestamp": {"type": ["number", "null"]},
            },
        },
        "album": {
            "type": "object",
            "required": ["id"],
            "properties": {
                "id": {"type": ["string", "integer"]},
                "name": {"type": "string"},
                "images": {
                    "type": ["array", "null"],
                    "items": {"$ref": "#/$defs/image"},
                },
                "subAlbums": {
                    "type": ["array", "null"],
                    "items": {"$ref": "#/$defs/album"},
                },
            },
        },
    },
}

_DOCUMENT_VALIDATOR: Optional[Draft202012Validator] = None


def validate_document(document: Dict[str, Any]) -> None:
    """Validate a stored library document and raise :class:`DocumentFormatError` on failure."""

    global _DOCUMENT_VALIDATOR
    if _DOCUMENT_VALIDATOR is None:
        _DOCUMENT_VALIDATOR = Draft202012Validator(LIBRARY_DOCUMENT_SCHEMA)
    errors = sorted(_DOCUMENT_VALIDATOR.iter_errors(document), key=lambda err: [str(part) for part in err.path])
    if errors:
        messages = "; ".join(error.message for error in errors)
        raise DocumentFormatError(f"Stored library document is invalid: {messages}")


__all__ = ["LIBRARY_DOCUMENT_SCHEMA", "validate_document"]
