"""Versioned key-value store contract used by the services.

読込→計算→書込の間に他の書込が入ったことを検出するため、各ドキュメントに
単調増加するバージョンを持たせる。put は expected_version が現在値と一致する
場合にだけ成功する（新規作成は expected_version=None）。
"""

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass
from typing import Any

from .errors import VersionConflictError


@dataclass(frozen=True)
class VersionedDocument:
    document: dict[str, Any]
    version: int


class KeyValueStore:
    """ストアが実装すべき最小インターフェース。"""

    def get(self, key: str) -> VersionedDocument | None:  # pragma: no cover - interface definition
        raise NotImplementedError

    def put(self, key: str, document: dict[str, Any], *, expected_version: int | None) -> int:  # pragma: no cover - interface definition
        """Write ``document`` and return the new version."""
        raise NotImplementedError

    def keys(self, prefix: str = "") -> list[str]:  # pragma: no cover - interface definition
        raise NotImplementedError


class InMemoryStore(KeyValueStore):
    """Thread-safe in-process implementation of the versioned store."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data: dict[str, VersionedDocument] = {}

    def get(self, key: str) -> VersionedDocument | None:
        with self._lock:
            current = self._data.get(key)
            if current is None:
                return None
            # 呼び出し側の変更が保存済みデータへ波及しないようコピーを返す
            return VersionedDocument(copy.deepcopy(current.document), current.version)

    def put(self, key: str, document: dict[str, Any], *, expected_version: int | None) -> int:
        with self._lock:
            current = self._data.get(key)
            actual = None if current is None else current.version
            if actual != expected_version:
                raise VersionConflictError(key, expected_version, actual)
            version = 1 if actual is None else actual + 1
            self._data[key] = VersionedDocument(copy.deepcopy(document), version)
            return version

    def keys(self, prefix: str = "") -> list[str]:
        with self._lock:
            return sorted(k for k in self._data if k.startswith(prefix))
