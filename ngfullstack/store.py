"""Durable key/value state for one generated project.

The store keeps one namespace of a shared JSON rc file in memory.  ``set``
only touches the in-memory copy; ``flush`` writes the whole namespace in one
atomic replace, leaving every other namespace in the file untouched.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from ngfullstack.utils import load_json, print_warning

_MISSING = object()


class PersistenceFailure(Exception):
    """Raised when the configuration file cannot be written."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Could not persist configuration to {path}: {reason}")


class ConfigurationStore:
    """Namespaced view over an rc file such as ``.yo-rc.json``.

    Reads never fail: a missing key is reported as absent (``None`` from
    :meth:`get`, ``False`` from ``in``), and a missing or unreadable file is
    treated as empty.
    """

    def __init__(self, path: str | Path, namespace: str) -> None:
        self.path = Path(path)
        self.namespace = namespace
        self._values: dict[str, Any] = self._read_namespace()
        self._dirty = False

    # -- Reads -------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under *key*, or *default* when absent."""
        value = self._values.get(key, _MISSING)
        if value is _MISSING:
            return default
        return value

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def all(self) -> dict[str, Any]:
        """Return a shallow copy of every key in this namespace."""
        return dict(self._values)

    @property
    def pending(self) -> bool:
        """``True`` when ``set`` was called since the last flush."""
        return self._dirty

    # -- Writes ------------------------------------------------------------

    def set(self, key: str, value: Any) -> None:
        """Record *value* in memory; nothing is written until :meth:`flush`."""
        self._values[key] = value
        self._dirty = True

    def update(self, values: dict[str, Any]) -> None:
        for key, value in values.items():
            self.set(key, value)

    def flush(self) -> Path:
        """Write the full in-memory namespace to disk.

        Flushing is idempotent and all-or-nothing: the file is rewritten via
        a temporary sibling and ``os.replace``.

        Raises:
            PersistenceFailure: If the file cannot be written.
        """
        document = self._read_document()
        document[self.namespace] = self._values
        content = json.dumps(document, indent=2, ensure_ascii=False) + "\n"

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(content)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise PersistenceFailure(self.path, str(exc)) from exc

        self._dirty = False
        return self.path

    # -- Internal helpers --------------------------------------------------

    def _read_document(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            return load_json(self.path)
        except (OSError, ValueError) as exc:
            # json.JSONDecodeError is a ValueError.
            print_warning(f"Ignoring unreadable configuration file {self.path}: {exc}")
            return {}

    def _read_namespace(self) -> dict[str, Any]:
        section = self._read_document().get(self.namespace, {})
        if not isinstance(section, dict):
            print_warning(
                f"Ignoring malformed '{self.namespace}' section in {self.path}"
            )
            return {}
        return dict(section)
