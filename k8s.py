# k8s.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class ObjectKey:
    namespace: str
    name: str
    kind: str = ""

    @classmethod
    def from_object(cls, obj: dict) -> "ObjectKey":
        meta = (obj or {}).get("metadata", {}) or {}
        return cls(
            namespace=meta.get("namespace") or "",
            name=meta.get("name") or "",
            kind=(obj or {}).get("kind") or "",
        )

    def __str__(self) -> str:
        ref = f"{self.namespace}/{self.name}" if self.namespace else self.name
        return f"{self.kind} {ref}" if self.kind else ref


def get_annotations(obj: dict) -> Optional[Dict[str, str]]:
    """Return the annotation map, or None when the object carries none."""
    return ((obj or {}).get("metadata", {}) or {}).get("annotations")


def get_labels(obj: dict) -> Optional[Dict[str, str]]:
    return ((obj or {}).get("metadata", {}) or {}).get("labels")


def set_annotation(obj: dict, key: str, value: str) -> None:
    """Set a metadata annotation in place, creating the map if needed."""
    meta = obj.get("metadata")
    if meta is None:
        meta = obj["metadata"] = {}
    annotations = meta.get("annotations")
    if annotations is None:
        annotations = meta["annotations"] = {}
    annotations[key] = value


def resource_version(obj: dict) -> str:
    return ((obj or {}).get("metadata", {}) or {}).get("resourceVersion") or ""
