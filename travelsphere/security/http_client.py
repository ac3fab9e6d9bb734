"""安全 HTTP 客户端：所有上游 API 调用的统一出口

职责：
  1. 自动脱敏异常中的 API Key
  2. 统一超时 / 指数退避重试策略
  3. 将网络与 HTTP 状态错误映射为 TransportError
  4. 隔离 httpx 依赖
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

import httpx

from travelsphere.security.key_manager import get_key_manager
from travelsphere.shared.exceptions import TransportError

_logger = logging.getLogger("travelsphere.http")

RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


class SecureHttpClient:
    """封装 httpx，自动脱敏异常并按指数退避重试"""

    def __init__(
        self,
        *,
        base_url: str = "",
        timeout: float = 5.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        tool_name: str = "http",
        headers: Optional[dict[str, str]] = None,
        auth: Optional[tuple[str, str]] = None,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._timeout = max(0.1, float(timeout))
        self._max_retries = max(0, int(max_retries))
        self._retry_delay = max(0.0, float(retry_delay))
        self._tool_name = tool_name
        self._sleep = sleep
        self._km = get_key_manager()
        self._client = httpx.Client(
            base_url=base_url,
            timeout=self._timeout,
            headers={"Content-Type": "application/json", "Accept": "application/json", **(headers or {})},
            auth=auth,
            transport=transport,
        )

    @property
    def tool_name(self) -> str:
        return self._tool_name

    def post_json(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST JSON 并返回解析后的响应体；异常信息自动脱敏。"""
        return self._request("POST", path, json=payload)

    def get_json(self, path: str, *, params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        return self._request("GET", path, params=params)

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        last_error: Optional[TransportError] = None

        for attempt in range(1, self._max_retries + 2):
            retryable = False
            try:
                resp = self._client.request(method, path, **kwargs)
                resp.raise_for_status()
                return resp.json()
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                retryable = status in RETRYABLE_STATUS_CODES
                last_error = TransportError(
                    self._tool_name,
                    f"HTTP {status}: {self._km.scrub_text(str(e))}",
                    code=str(status),
                    recoverable=retryable,
                )
            except httpx.TimeoutException:
                retryable = True
                last_error = TransportError(
                    self._tool_name,
                    f"request timeout ({self._timeout}s), attempt {attempt}",
                    code="TIMEOUT",
                )
            except httpx.HTTPError as e:
                retryable = True
                last_error = TransportError(
                    self._tool_name,
                    f"network error: {self._km.scrub_text(str(e))}",
                    code="NETWORK_ERROR",
                )
            except ValueError as e:
                # 非 JSON 响应体
                last_error = TransportError(
                    self._tool_name,
                    f"invalid response body: {self._km.scrub_text(str(e))}",
                    code="API_ERROR",
                    recoverable=False,
                )

            if not retryable or attempt > self._max_retries:
                break
            delay = self._retry_delay * (2 ** (attempt - 1))
            _logger.warning("%s %s failed (%s), retry %d in %.1fs", method, path, last_error.code, attempt, delay)
            self._sleep(delay)

        raise last_error  # type: ignore[misc]

    def close(self) -> None:
        self._client.close()
