#!/usr/bin/env python3
"""Report whether the objects in YAML manifests may be deleted.

Usage:
  python3 tools/check_confirmation.py shoot.yaml project.yaml
  kubectl get shoot my-shoot -n garden-dev -o yaml | python3 tools/check_confirmation.py

Notes:
- Read-only: runs the same check the admission layer runs, never writes.
- CustomResourceDefinitions labelled gardener.cloud/deletion-protected are
  reported as protected types.
- Exit status is 1 when any object is not confirmed.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterable, List, Optional, TextIO

import yaml

# Ensure project root is on sys.path when running as a script
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from errors import ConfirmationRequiredError  # noqa: E402
from gate import check_if_deletion_is_confirmed, is_deletion_protected  # noqa: E402
from k8s import ObjectKey  # noqa: E402


def _objects(docs: Iterable) -> List[dict]:
    out: List[dict] = []
    for doc in docs:
        if not isinstance(doc, dict):
            continue
        # `kubectl get -o yaml` of several objects yields a List
        if str(doc.get("kind") or "").endswith("List") and "items" in doc:
            out.extend(i for i in doc.get("items", []) or [] if isinstance(i, dict))
        else:
            out.append(doc)
    return out


def check_stream(stream: TextIO, out: Optional[TextIO] = None) -> int:
    """Check every object in ``stream``; return the number not confirmed."""
    unconfirmed = 0
    for obj in _objects(yaml.safe_load_all(stream)):
        key = ObjectKey.from_object(obj)
        if obj.get("kind") == "CustomResourceDefinition":
            state = "protected type" if is_deletion_protected(obj) else "unprotected type"
            print(f"[check] {key}: {state}", file=out)
            continue
        try:
            check_if_deletion_is_confirmed(obj)
        except ConfirmationRequiredError as e:
            unconfirmed += 1
            print(f"[check] {key}: {e}", file=out)
            continue
        print(f"[check] {key}: confirmed", file=out)
    return unconfirmed


def main(argv: List[str] | None = None) -> int:
    paths = sys.argv[1:] if argv is None else argv
    unconfirmed = 0
    if not paths:
        unconfirmed += check_stream(sys.stdin)
    for path in paths:
        with open(path, encoding="utf-8") as f:
            unconfirmed += check_stream(f)

    if unconfirmed:
        print(f"[check] {unconfirmed} object(s) not confirmed for deletion")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
