"""Custom data HTTP API 클라이언트.

reference(저장소 full name) + key 단위의 key/value 저장소에 값을 읽고 쓴다.
- Bearer 토큰 인증
- 고정 base URL 대상
- non-2xx 응답은 status code + 파싱된 에러 payload를 담아 CustomDataApiError로 raise
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from gh_governance_etl.config import CustomDataConfig
from gh_governance_etl.models import CustomDataEntry

logger = logging.getLogger(__name__)


class CustomDataApiError(Exception):
    """Custom data API 호출 실패."""

    def __init__(self, status_code: int, endpoint: str, payload: Any = None):
        self.status_code = status_code
        self.endpoint = endpoint
        self.payload = payload
        super().__init__(f"Custom data API error {status_code} @ {endpoint}")


class CustomDataClient:
    """Custom data HTTP API 클라이언트."""

    def __init__(self, config: CustomDataConfig) -> None:
        if not config.api_token:
            raise RuntimeError("DX_API_KEY가 설정되지 않았습니다")
        if not config.base_url:
            raise RuntimeError("DX_URL이 설정되지 않았습니다")

        self._client = httpx.Client(
            base_url=config.base_url.rstrip("/"),
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
                "Authorization": f"Bearer {config.api_token}",
            },
            timeout=config.request_timeout_sec,
        )

    def get(self, reference: str, key: str) -> Any:
        """단일 항목 조회. 항목이 없으면(404) None."""
        endpoint = "/api/customData.get"
        resp = self._client.get(endpoint, params={"reference": reference, "key": key})
        if resp.status_code == 404:
            return None
        return _process_response(resp, endpoint)

    def set(self, reference: str, key: str, value: dict[str, Any]) -> Any:
        """단일 항목 저장."""
        return self._post("/api/customData.set", {"reference": reference, "key": key, "value": value})

    def set_all(self, entries: list[CustomDataEntry]) -> Any:
        """여러 항목을 한 번의 호출로 저장한다."""
        return self._post(
            "/api/customData.setAll",
            {"data": [entry.model_dump(mode="json") for entry in entries]},
        )

    def delete(self, reference: str, key: str) -> Any:
        """단일 항목 삭제."""
        return self._post("/api/customData.delete", {"reference": reference, "key": key})

    def _post(self, endpoint: str, body: dict[str, Any]) -> Any:
        resp = self._client.post(endpoint, json=body)
        return _process_response(resp, endpoint)

    def close(self) -> None:
        """httpx.Client를 종료한다."""
        self._client.close()

    def __enter__(self) -> CustomDataClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


def _process_response(resp: httpx.Response, endpoint: str) -> Any:
    """2xx면 본문을, 아니면 CustomDataApiError를 raise한다.

    2xx 본문이 JSON이 아니면 (예: "OK") 텍스트를 그대로 돌려준다.
    """
    if not resp.is_success:
        try:
            payload = resp.json()
        except ValueError:
            payload = None
        raise CustomDataApiError(resp.status_code, endpoint, payload)
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text
