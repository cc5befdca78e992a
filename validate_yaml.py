#!/usr/bin/env python3
"""
Check the vehicle documents in the data directory.

Each document must match maintsync/schema.yaml, and task and history ids
must be unique within their collection (completion and deletion look
items up by id).
"""
import sys
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from jsonschema import Draft7Validator

import maintsync
from maintsync.config import load_config
from maintsync.store import YamlDocumentStore
from maintsync.vehicle import HISTORY_FIELD, UPCOMING_FIELD, Vehicle


def load_schema() -> dict:
    """Load the JSON schema shipped with the maintsync package."""
    schema_path = Path(maintsync.__file__).parent / "schema.yaml"
    with open(schema_path) as f:
        return yaml.safe_load(f)


def duplicate_ids(doc: Dict[str, Any]) -> List[str]:
    problems = []
    for field in (UPCOMING_FIELD, HISTORY_FIELD):
        counts = Counter(str(item.get("id")) for item in doc.get(field) or [])
        for item_id, count in sorted(counts.items()):
            if count > 1:
                problems.append(f"Duplicate id '{item_id}' in {field} ({count} items)")
    return problems


def validate_document(doc: Any, schema: dict) -> List[str]:
    """Schema errors (with their location) followed by id clashes."""
    errors = []
    validator = Draft7Validator(schema)
    for error in sorted(validator.iter_errors(doc), key=lambda e: [str(p) for p in e.path]):
        errors.append(f"Schema validation error: {error.message}")
        if error.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in error.path)}")
    if not errors:
        errors.extend(duplicate_ids(doc))
    return errors


def validate_vehicle_file(filepath: Path, schema: dict) -> List[str]:
    """Validate a single vehicle YAML document. Returns list of errors."""
    try:
        with open(filepath) as f:
            doc = yaml.safe_load(f)
    except yaml.YAMLError as e:
        return [f"YAML parse error: {e}"]
    except OSError as e:
        return [f"Error: {e}"]
    return validate_document(doc, schema)


def summarize(doc: Dict[str, Any]) -> str:
    """One-line description, e.g. 'Civic (ABC 1234): 2 upcoming, 1 history'."""
    vehicle = Vehicle.from_document(doc)
    upcoming = len(doc.get(UPCOMING_FIELD) or [])
    history = len(doc.get(HISTORY_FIELD) or [])
    return f"{vehicle.display_name}: {upcoming} upcoming, {history} history"


def main(data_dir: Optional[Path] = None):
    """Validate every vehicle document in the data directory."""
    schema = load_schema()
    vehicles_dir = Path(data_dir or load_config().data_dir)

    if not vehicles_dir.exists():
        print(f"Error: vehicles directory not found: {vehicles_dir}")
        return 1

    store = YamlDocumentStore(vehicles_dir)
    keys = store.keys()
    if not keys:
        print(f"Warning: No vehicle documents found in {vehicles_dir}")
        return 0

    all_valid = True
    for key in keys:
        path = store.path_for(key)
        errors = validate_vehicle_file(path, schema)
        if errors:
            print(f"FAIL: {key} ({path.name})")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {key} - {summarize(store.get(key))}")

    print(f"\n{len(keys)} document(s) checked")
    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main(Path(sys.argv[1]) if len(sys.argv) > 1 else None))
