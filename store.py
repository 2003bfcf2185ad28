# store.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from kubernetes import client
from kubernetes.client.rest import ApiException

from errors import ConflictError, NotFoundError, StoreError
from k8s import ObjectKey
from settings import load_kube

logger = logging.getLogger(__name__)


class ObjectStore(Protocol):
    """Fetch-by-identity and update-with-version-check.

    ``get`` raises NotFoundError for a missing object; ``update`` raises
    ConflictError when ``metadata.resourceVersion`` is stale. Everything else
    surfaces as StoreError.
    """

    def get(self, key: ObjectKey, *, timeout: Optional[float] = None) -> dict: ...

    def update(self, obj: dict, *, timeout: Optional[float] = None) -> dict: ...


@dataclass(frozen=True)
class ResourceType:
    group: str
    version: str
    plural: str
    namespaced: bool = True


SHOOTS = ResourceType("core.gardener.cloud", "v1beta1", "shoots", namespaced=True)
PROJECTS = ResourceType("core.gardener.cloud", "v1beta1", "projects", namespaced=False)


class CustomObjectStore:
    """ObjectStore for one custom resource type, backed by CustomObjectsApi."""

    def __init__(self, api: Any, resource: ResourceType) -> None:
        self.api = api
        self.resource = resource

    @classmethod
    def from_kube(cls, resource: ResourceType) -> "CustomObjectStore":
        """Load in-cluster config (or the local kubeconfig) and build a store."""
        load_kube()
        return cls(client.CustomObjectsApi(), resource)

    def _target(self, key: ObjectKey) -> dict:
        r = self.resource
        target = {"group": r.group, "version": r.version, "plural": r.plural, "name": key.name}
        if r.namespaced:
            if not key.namespace:
                raise ValueError(f"{r.plural} are namespaced, {key} has no namespace")
            target["namespace"] = key.namespace
        return target

    @staticmethod
    def _request_kwargs(timeout: Optional[float]) -> dict:
        return {} if timeout is None else {"_request_timeout": timeout}

    def get(self, key: ObjectKey, *, timeout: Optional[float] = None) -> dict:
        target = self._target(key)
        try:
            if self.resource.namespaced:
                return self.api.get_namespaced_custom_object(**target, **self._request_kwargs(timeout))
            return self.api.get_cluster_custom_object(**target, **self._request_kwargs(timeout))
        except ApiException as e:
            if e.status == 404:
                raise NotFoundError(key) from e
            raise StoreError(key, f"get failed: {e.status} {e.reason}") from e

    def update(self, obj: dict, *, timeout: Optional[float] = None) -> dict:
        """Replace ``obj`` (PUT); the API server checks its resourceVersion."""
        key = ObjectKey.from_object(obj)
        target = self._target(key)
        try:
            if self.resource.namespaced:
                return self.api.replace_namespaced_custom_object(
                    body=obj, **target, **self._request_kwargs(timeout)
                )
            return self.api.replace_cluster_custom_object(body=obj, **target, **self._request_kwargs(timeout))
        except ApiException as e:
            if e.status == 404:
                raise NotFoundError(key) from e
            if e.status == 409:
                logger.debug("update of %s conflicted: %s", key, e.reason)
                raise ConflictError(key) from e
            raise StoreError(key, f"update failed: {e.status} {e.reason}") from e
