"""JSON Schema validation for voucher and zone-parameter documents.

Schemas ship inside the package under ``lazymint/schemas`` and reference
each other by ``$id``, resolved through a shared registry.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, List

from jsonschema import Draft202012Validator
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

SCHEMAS_DIR = Path(__file__).parent / "schemas"

VOUCHER_SCHEMA = "voucher.schema.json"
ZONE_PARAMETERS_SCHEMA = "zone-parameters.schema.json"


def _load_json(path: Path) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


@lru_cache(maxsize=1)
def _schema_registry() -> Registry:
    """Registry of every packaged schema, keyed by its $id."""
    resources = []
    for schema_path in sorted(SCHEMAS_DIR.glob("*.schema.json")):
        schema = _load_json(schema_path)
        schema_id = schema.get("$id") or f"https://schemas.momentum.inc/lazymint/{schema_path.name}"
        resources.append((schema_id, Resource.from_contents(schema, default_specification=DRAFT202012)))
    return Registry().with_resources(resources)


@lru_cache(maxsize=None)
def schema_validator(schema_name: str) -> Draft202012Validator:
    """Create a validator for a packaged schema file."""
    schema = _load_json(SCHEMAS_DIR / schema_name)
    return Draft202012Validator(schema, registry=_schema_registry())


def validate_against_schema(obj: Any, schema_name: str) -> List[str]:
    """Validate an object against a packaged schema.

    Returns:
        List of validation error messages (empty if valid)
    """
    validator = schema_validator(schema_name)
    return [
        f"{error.json_path}: {error.message}"
        for error in sorted(validator.iter_errors(obj), key=lambda e: e.json_path)
    ]


def validate_voucher_document(obj: Any) -> List[str]:
    return validate_against_schema(obj, VOUCHER_SCHEMA)


def validate_zone_parameters_document(obj: Any) -> List[str]:
    return validate_against_schema(obj, ZONE_PARAMETERS_SCHEMA)
