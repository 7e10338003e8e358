"""
Manifest loading.

A manifest is a YAML file with one or more intent records, either as
separate documents (``---``) or as a list under ``items``:

    metadata:
      name: login-bug
      namespace: team-a
    spec:
      repo: https://github.com/acme/webapp
      title: Login fails on Safari
      description: Steps to reproduce...
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from issuekeeper.models.record import IntentRecord


class ManifestError(ValueError):
    """Raised when a manifest cannot be parsed into records."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(f"{message} ({path})" if path else message)
        self.path = path


def _documents(raw: Any) -> list[Any]:
    if raw is None:
        return []
    if isinstance(raw, list):
        return raw
    if isinstance(raw, dict) and "items" in raw:
        return list(raw["items"] or [])
    return [raw]


def parse_manifest(text: str, path: Path | None = None) -> list[IntentRecord]:
    """Parse manifest text into records.

    Status and lifecycle metadata in the manifest are ignored; those belong
    to the store and the reconciler.

    Raises:
        ManifestError: On invalid YAML or an invalid record
    """
    try:
        raw_docs = list(yaml.safe_load_all(text))
    except yaml.YAMLError as e:
        raise ManifestError(f"Invalid YAML: {e}", path) from e

    records: list[IntentRecord] = []
    for raw in raw_docs:
        for index, doc in enumerate(_documents(raw)):
            if not isinstance(doc, dict):
                raise ManifestError(f"Record #{index} is not a mapping", path)
            metadata = doc.get("metadata") or {}
            if not isinstance(metadata, dict):
                raise ManifestError(f"Record #{index} metadata is not a mapping", path)
            try:
                record = IntentRecord.model_validate(
                    {
                        "metadata": {
                            "name": metadata.get("name"),
                            "namespace": metadata.get("namespace") or "default",
                        },
                        "spec": doc.get("spec"),
                    }
                )
            except ValidationError as e:
                raise ManifestError(f"Invalid record {metadata.get('name')!r}: {e}", path) from e
            records.append(record)
    return records


def load_manifest(path: str | Path) -> list[IntentRecord]:
    """Load records from a manifest file.

    Raises:
        FileNotFoundError: If the file does not exist
        ManifestError: If the file is not a valid manifest
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Manifest not found: {path}")
    return parse_manifest(path.read_text(), path)
