"""集中式 API Key 管理器

职责：
  1. 统一读取航班 / 酒店上游 API 凭证
  2. 提供 Key 脱敏方法（用于日志/异常）
  3. 支持从环境变量重新加载（密钥轮换）

所有上游 API 调用应通过此模块获取凭证，禁止直接 os.getenv。
"""

from __future__ import annotations

import os
import time
from typing import Optional

from travelsphere.security.redact import redact_sensitive
from travelsphere.shared.exceptions import KeyMissingError

FLIGHT_KEY_NAME = "FLIGHT_API_KEY"
HOTEL_KEY_NAME = "HOTEL_API_KEY"
HOTEL_USERNAME_NAME = "HOTEL_API_USERNAME"
HOTEL_PASSWORD_NAME = "HOTEL_API_PASSWORD"

_SECRET_NAMES = (FLIGHT_KEY_NAME, HOTEL_KEY_NAME, HOTEL_PASSWORD_NAME)


class _KeyEntry:
    __slots__ = ("value", "loaded_at", "source")

    def __init__(self, value: str, source: str):
        self.value = value
        self.loaded_at = time.time()
        self.source = source


class KeyManager:
    """进程内凭证缓存"""

    def __init__(self):
        self._keys: dict[str, _KeyEntry] = {}

    def get(self, name: str, *, required: bool = False) -> Optional[str]:
        entry = self._keys.get(name)
        if entry is None:
            raw = os.getenv(name, "")
            if raw:
                entry = _KeyEntry(value=raw, source="env")
                self._keys[name] = entry
            elif required:
                raise KeyMissingError(name)
            else:
                return None
        return entry.value

    def get_flight_key(self, *, required: bool = True) -> str:
        return self.get(FLIGHT_KEY_NAME, required=required) or ""

    def get_hotel_credentials(self) -> tuple[str, str]:
        """酒店 API 使用 Basic Auth；未配置用户名时回退到 HOTEL_API_KEY"""
        username = self.get(HOTEL_USERNAME_NAME) or ""
        password = self.get(HOTEL_PASSWORD_NAME) or self.get(HOTEL_KEY_NAME) or ""
        return username, password

    # ── 脱敏 ──────────────────────────────────────────

    @staticmethod
    def redact(value: str) -> str:
        """仅保留前 4 和后 4 位"""
        if not value or len(value) <= 8:
            return "****"
        return value[:4] + "****" + value[-4:]

    def scrub_text(self, text: str) -> str:
        """从任意文本中擦除所有已知凭证值"""
        result = str(text) if text is not None else ""
        for name in _SECRET_NAMES:
            self.get(name)
        for name, entry in self._keys.items():
            if name in _SECRET_NAMES and entry.value and entry.value in result:
                result = result.replace(entry.value, f"[{name}:***REDACTED***]")
        return redact_sensitive(result)

    def has_key(self, name: str) -> bool:
        if name in self._keys:
            return True
        return bool(os.getenv(name, ""))

    def reload(self, name: str) -> None:
        """强制从环境变量重新加载指定 Key"""
        raw = os.getenv(name, "")
        if raw:
            self._keys[name] = _KeyEntry(value=raw, source="env")
        elif name in self._keys:
            del self._keys[name]


_manager: Optional[KeyManager] = None


def get_key_manager() -> KeyManager:
    global _manager
    if _manager is None:
        _manager = KeyManager()
    return _manager


__all__ = [
    "FLIGHT_KEY_NAME",
    "HOTEL_KEY_NAME",
    "HOTEL_PASSWORD_NAME",
    "HOTEL_USERNAME_NAME",
    "KeyManager",
    "get_key_manager",
]
