from __future__ import annotations

import copy
from typing import Callable, Dict, List, Optional

import pytest

from errors import ConflictError, NotFoundError
from k8s import ObjectKey, resource_version


class FakeStore:
    """In-memory ObjectStore with resourceVersion checks.

    ``before_update`` runs ahead of the version check, which is where tests
    simulate another writer racing us.
    """

    def __init__(self) -> None:
        self.objects: Dict[ObjectKey, dict] = {}
        self.gets: List[ObjectKey] = []
        self.updates: List[dict] = []
        self.before_update: Optional[Callable[["FakeStore", dict], None]] = None
        self.get_error: Optional[Exception] = None
        self.update_error: Optional[Exception] = None

    def put(self, obj: dict) -> dict:
        obj = copy.deepcopy(obj)
        key = ObjectKey.from_object(obj)
        prev = self.objects.get(key)
        version = int(resource_version(prev)) + 1 if prev else 1
        obj.setdefault("metadata", {})["resourceVersion"] = str(version)
        self.objects[key] = obj
        return copy.deepcopy(obj)

    def get(self, key: ObjectKey, *, timeout: Optional[float] = None) -> dict:
        self.gets.append(key)
        if self.get_error is not None:
            raise self.get_error
        if key not in self.objects:
            raise NotFoundError(key)
        return copy.deepcopy(self.objects[key])

    def update(self, obj: dict, *, timeout: Optional[float] = None) -> dict:
        self.updates.append(copy.deepcopy(obj))
        key = ObjectKey.from_object(obj)
        if self.before_update is not None:
            self.before_update(self, obj)
        if self.update_error is not None:
            raise self.update_error
        current = self.objects.get(key)
        if current is None:
            raise NotFoundError(key)
        if resource_version(current) != resource_version(obj):
            raise ConflictError(key)
        return self.put(obj)


def shoot(annotations: Optional[dict] = None, name: str = "my-shoot", namespace: str = "garden-dev") -> dict:
    meta = {"name": name, "namespace": namespace}
    if annotations is not None:
        meta["annotations"] = annotations
    return {"apiVersion": "core.gardener.cloud/v1beta1", "kind": "Shoot", "metadata": meta}


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()
