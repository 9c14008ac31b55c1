"""
Versions Manifest
The list of published versions, stored as a ready-to-serve versions envelope.
"""

import json
from pathlib import Path
from typing import List

from jsonschema import ValidationError, validate

from module_registry.errors import ManifestError
from module_registry.registry.protocol import versions_envelope

MANIFEST_NAME = "versions.json"

MANIFEST_SCHEMA = {
    "type": "object",
    "required": ["modules"],
    "properties": {
        "modules": {
            "type": "array",
            "minItems": 1,
            "maxItems": 1,
            "items": {
                "type": "object",
                "required": ["versions"],
                "properties": {
                    "versions": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["version"],
                            "properties": {"version": {"type": "string", "minLength": 1}},
                        },
                    },
                },
            },
        },
    },
}


def write_manifest(directory: Path, versions: List[str]) -> Path:
    path = Path(directory) / MANIFEST_NAME
    path.write_text(json.dumps(versions_envelope(versions)), encoding="utf-8")
    return path


def read_manifest(directory: Path) -> List[str]:
    """Load and validate the manifest of an asset cache; returns its versions."""
    path = Path(directory) / MANIFEST_NAME
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ManifestError(f"Cannot read versions manifest {path}: {e}") from e

    try:
        validate(instance=document, schema=MANIFEST_SCHEMA)
    except ValidationError as e:
        raise ManifestError(f"Invalid versions manifest {path}: {e.message}") from e

    return [item["version"] for item in document["modules"][0]["versions"]]
