"""
remote
------

Cloudflare control-plane API (https://api.cloudflare.com/client/v4) 래퍼.

모든 경로는 /accounts/{account_id} 기준의 상대 경로이며,
응답 본문은 끝까지 읽은 뒤 JSON 으로 파싱한다.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .errors import ConfigError, ParseError, TransportError, ValidationError
from .logging_utils import get_logger


logger = get_logger(__name__)


API_BASE_URL = "https://api.cloudflare.com/client/v4"


@dataclass(frozen=True)
class ApiResponse:
    status_code: int
    body: Any

    @property
    def ok(self) -> bool:
        if not 200 <= self.status_code < 300:
            return False
        # Cloudflare 는 2xx 여도 success=false 로 실패를 알리는 경우가 있다.
        if isinstance(self.body, dict) and self.body.get("success") is False:
            return False
        return True

    def error_messages(self) -> str:
        if isinstance(self.body, dict):
            errors = self.body.get("errors") or []
            messages = [
                str(e.get("message", e)) if isinstance(e, dict) else str(e)
                for e in errors
            ]
            if messages:
                return "; ".join(messages)
        return f"HTTP {self.status_code}"


class RemoteClient:
    def __init__(
        self,
        account_id: str,
        api_token: str,
        *,
        base_url: str = API_BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.account_id = account_id
        try:
            self._client = httpx.Client(
                base_url=f"{base_url.rstrip('/')}/accounts/{account_id}",
                headers={
                    "Authorization": f"Bearer {api_token}",
                    "Content-Type": "application/json",
                },
                timeout=timeout,
                transport=transport,
            )
        except UnicodeEncodeError as e:
            # 헤더 값은 ASCII 만 허용된다.
            raise ConfigError("CLOUDFLARE_API_TOKEN 에 ASCII 가 아닌 문자가 있습니다.") from e
        except httpx.InvalidURL as e:
            raise ConfigError(f"API 주소를 만들 수 없습니다: account_id={account_id!r} ({e})") from e

    def __enter__(self) -> "RemoteClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def close(self) -> None:
        self._client.close()

    @staticmethod
    def projects_path() -> str:
        return "/pages/projects"

    @staticmethod
    def project_path(name: str) -> str:
        if not name:
            raise ValidationError("프로젝트 이름 없이 프로젝트 경로를 만들 수 없습니다.")
        return f"/pages/projects/{name}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> ApiResponse:
        logger.debug("API 요청: %s %s", method, path)
        try:
            response = self._client.request(method, path, json=json_body, params=params)
            raw = response.read()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(f"API 요청 실패: {method} {path!r} ({e})") from e

        logger.debug("API 응답: %s %s -> %d", method, path, response.status_code)
        if not raw.strip():
            return ApiResponse(status_code=response.status_code, body={})
        try:
            body = json.loads(raw)
        except ValueError as e:
            raise ParseError(
                f"API 응답을 JSON 으로 파싱할 수 없습니다: {method} {path} "
                f"(HTTP {response.status_code})"
            ) from e
        return ApiResponse(status_code=response.status_code, body=body)

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> ApiResponse:
        return self._request("GET", path, params=params)

    def post(self, path: str, json_body: Dict[str, Any]) -> ApiResponse:
        return self._request("POST", path, json_body=json_body)

    def patch(self, path: str, json_body: Dict[str, Any]) -> ApiResponse:
        return self._request("PATCH", path, json_body=json_body)

    def lookup_database_id(self, name: str) -> str:
        """
        이름으로 D1 데이터베이스 uuid 를 찾는다. 없으면 "" 를 반환한다.

        XXX: 문서화되지 않은 목록 API 를 사용하므로 응답 형태가 바뀔 수 있다.
        형태가 예상과 다르면 경고만 남기고 "" 를 반환한다.
        """
        response = self.get("/d1/database", params={"name": name})
        if not response.ok:
            logger.warning(
                "D1 데이터베이스 목록 조회 실패 (%s), 바인딩 없이 진행합니다.",
                response.error_messages(),
            )
            return ""

        results = response.body.get("result") if isinstance(response.body, dict) else None
        if not isinstance(results, list):
            logger.warning("D1 데이터베이스 목록 응답 형태가 예상과 다릅니다. 바인딩 없이 진행합니다.")
            return ""

        database_id = ""
        for item in results:
            if isinstance(item, dict) and item.get("name") == name:
                database_id = str(item.get("uuid") or "")
        return database_id
