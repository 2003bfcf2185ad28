# confirm.py
from __future__ import annotations

import copy
import logging
import threading
from typing import Callable, Optional, Tuple

from cancellation import Cancellation
from clock import Clock, format_timestamp, system_clock
from errors import NotFoundError, OperationCancelled
from gate import CONFIRMATION_DELETION, GARDENER_TIMESTAMP
from k8s import ObjectKey, get_annotations, resource_version, set_annotation
from retry_policy import DEFAULT_BACKOFF, Backoff, retry_on_conflict
from settings import Settings, cancellation, load_settings
from store import ObjectStore

logger = logging.getLogger(__name__)


def _owned(obj: dict) -> Tuple[Optional[str], Optional[str]]:
    """The two annotations confirm_deletion writes; nothing else is compared."""
    annotations = get_annotations(obj) or {}
    return annotations.get(CONFIRMATION_DELETION), annotations.get(GARDENER_TIMESTAMP)


def _guarded(cancel: Cancellation, call: Callable[[Optional[float]], dict]) -> dict:
    try:
        return cancel.run(lambda: call(cancel.remaining()))
    except OperationCancelled:
        raise
    except Exception as e:
        if cancel.done():
            raise OperationCancelled(f"cancelled during store call: {e}") from e
        raise


def confirm_deletion(
    store: ObjectStore,
    obj: dict,
    *,
    clock: Clock = system_clock,
    backoff: Backoff = DEFAULT_BACKOFF,
    cancel: Optional[Cancellation] = None,
) -> Optional[dict]:
    """Set the deletion confirmation annotation on the stored version of ``obj``.

    ``obj`` only supplies the identity; it is not modified. Every attempt
    re-reads the object, so the write always carries the resourceVersion of
    the read right before it. Version conflicts are retried per ``backoff``.

    Returns the stored object, or None when it no longer exists. If the
    annotations are already what we would write, nothing is sent.
    """
    key = ObjectKey.from_object(obj)
    if not key.name:
        raise ValueError("object has no metadata.name")
    cancel = cancel if cancel is not None else Cancellation()

    def _attempt() -> Optional[dict]:
        try:
            current = _guarded(cancel, lambda timeout: store.get(key, timeout=timeout))
        except NotFoundError:
            logger.info("%s not found, nothing to confirm", key)
            return None

        desired = copy.deepcopy(current)
        set_annotation(desired, CONFIRMATION_DELETION, "true")
        set_annotation(desired, GARDENER_TIMESTAMP, format_timestamp(clock()))

        if _owned(desired) == _owned(current):
            logger.debug("%s already confirmed, skipping update", key)
            return current

        logger.debug("updating %s at resourceVersion %s", key, resource_version(current))
        updated = _guarded(cancel, lambda timeout: store.update(desired, timeout=timeout))
        logger.info("confirmed deletion of %s", key)
        return updated

    return retry_on_conflict(backoff, _attempt, cancel=cancel)


def confirm_deletion_with_settings(
    store: ObjectStore,
    obj: dict,
    settings: Optional[Settings] = None,
    *,
    event: Optional[threading.Event] = None,
    clock: Clock = system_clock,
) -> Optional[dict]:
    """confirm_deletion with backoff and timeout taken from the environment.

    ``event`` is the caller's shutdown event; setting it cancels the call.
    """
    settings = settings if settings is not None else load_settings()
    return confirm_deletion(
        store,
        obj,
        clock=clock,
        backoff=settings.backoff,
        cancel=cancellation(settings, event),
    )
