from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from jsonschema import Draft202012Validator


_SCHEMA_PATH = Path(__file__).resolve().parent / "response_schema.json"


def load_response_schema() -> Dict[str, Any]:
    return json.loads(_SCHEMA_PATH.read_text(encoding="utf-8"))


def validate_response(kind: str, payload: Dict[str, Any]) -> None:
    schema = load_response_schema()
    definitions = schema["$defs"]
    if kind not in definitions:
        raise KeyError(f"no response schema named {kind!r}")
    validator = Draft202012Validator({**schema, "$ref": f"#/$defs/{kind}"})
    errors = sorted(validator.iter_errors(payload), key=lambda e: list(e.path))
    if errors:
        joined = "; ".join(e.message for e in errors)
        raise ValueError(f"{kind} response failed schema validation: {joined}")
