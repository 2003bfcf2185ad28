# gate.py
from __future__ import annotations

from errors import ConfirmationRequiredError
from k8s import ObjectKey, get_annotations, get_labels

# Must be "true" on a Shoot/Project (or any protected object) before a DELETE
# is accepted; without it every delete request is denied.
CONFIRMATION_DELETION = "confirmation.gardener.cloud/deletion"
# Provenance of the last confirmation write, UTC.
GARDENER_TIMESTAMP = "gardener.cloud/timestamp"
# Label on a CustomResourceDefinition: instances need the confirmation above.
DELETION_PROTECTED = "gardener.cloud/deletion-protected"

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def parse_bool(value: str) -> bool:
    """Parse a boolean annotation value.

    Accepts exactly 1, t, T, TRUE, true, True and 0, f, F, FALSE, false,
    False. Mixed case such as "tRuE", surrounding whitespace and words like
    "yes" are rejected with ValueError.
    """
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"invalid boolean value {value!r}")


def _is_true(value) -> bool:
    if not isinstance(value, str):
        return False
    try:
        return parse_bool(value)
    except ValueError:
        return False


def check_if_deletion_is_confirmed(obj: dict) -> None:
    """Raise ConfirmationRequiredError unless deletion of ``obj`` is confirmed."""
    annotations = get_annotations(obj)
    if annotations is None or not _is_true(annotations.get(CONFIRMATION_DELETION)):
        raise ConfirmationRequiredError(ObjectKey.from_object(obj), CONFIRMATION_DELETION)


def is_deletion_protected(obj: dict) -> bool:
    """True if ``obj`` (usually a CRD) marks its instances as deletion-protected."""
    labels = get_labels(obj) or {}
    return _is_true(labels.get(DELETION_PROTECTED))
