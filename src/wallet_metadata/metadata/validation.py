"""JSON payload validation — checked before anything is encrypted or sent."""

from __future__ import annotations

import json
from typing import Any

from wallet_metadata.errors.metadata_errors import MetadataValidationError


def validate_json(document: str | dict[str, Any]) -> str:
    """Return the compact serialization of a valid top-level JSON object.

    Raises:
        MetadataValidationError: If the input is not a string or dict, is
            empty, is not valid JSON, or is not a JSON object.
    """
    if isinstance(document, dict):
        parsed: Any = document
    elif isinstance(document, str):
        if not document.strip():
            raise MetadataValidationError("JSON payload is empty")
        try:
            parsed = json.loads(document)
        except json.JSONDecodeError as exc:
            raise MetadataValidationError(f"invalid JSON: {exc.msg}") from exc
    else:
        msg = f"JSON payload must be a string or dict, got {type(document).__name__}"
        raise MetadataValidationError(msg)

    if not isinstance(parsed, dict):
        msg = f"JSON payload must be an object, got {type(parsed).__name__}"
        raise MetadataValidationError(msg)

    try:
        return json.dumps(parsed, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise MetadataValidationError(f"payload is not JSON-serializable: {exc}") from exc
