"""Namespace keying for backends without native key scoping.

Physical key format: ``"<namespace>:<key>"``. Inside the namespace part
``\\`` is written as ``\\\\`` and ``:`` as ``\\:``, so the first bare
colon of a physical key always ends the namespace. Plain names such as
``app`` are unchanged; ``a`` and ``a:b`` get disjoint prefixes.

The Redis backend also tracks each namespace's physical keys in a set
named ``"namespace\\:<namespace>"``. That name has no bare colon, so no
data key can ever take it.
"""

from __future__ import annotations

from shoebox.shared.types import DEFAULT_NAMESPACE

_SEPARATOR = ":"
_MEMBERSHIP_PREFIX = "namespace\\:"


def escape_namespace(namespace: str) -> str:
    return namespace.replace("\\", "\\\\").replace(_SEPARATOR, "\\" + _SEPARATOR)


class NamespaceKeyer:
    """Derives physical keys from (namespace, logical key)."""

    def __init__(self, namespace: str = DEFAULT_NAMESPACE) -> None:
        self._namespace = namespace
        self._escaped = escape_namespace(namespace)
        self._prefix = f"{self._escaped}{_SEPARATOR}"

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def membership_key(self) -> str:
        """Name of the per-namespace key membership set."""
        return f"{_MEMBERSHIP_PREFIX}{self._escaped}"

    def attach(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def owns(self, physical_key: str) -> bool:
        return physical_key.startswith(self._prefix)

    def detach(self, physical_key: str) -> str:
        """Inverse of attach(). Raises ValueError for foreign keys."""
        if not self.owns(physical_key):
            msg = f"Key {physical_key!r} is not in namespace {self._namespace!r}"
            raise ValueError(msg)
        return physical_key[len(self._prefix) :]
