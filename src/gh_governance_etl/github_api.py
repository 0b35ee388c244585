"""GitHub REST API 동기 클라이언트.

거버넌스 신호 수집에 필요한 고정된 엔드포인트만 호출한다.
- org 저장소 검색 (단일 페이지)
- 파일 메타데이터 / 경로별 최근 커밋
- branch protection / 언어별 바이트 수
- 5xx / timeout 지수 백오프 재시도
- 404는 GitHubNotFoundError로 구분
"""

from __future__ import annotations

import logging
import random
import time
from typing import Any
from urllib.parse import quote

import httpx

from gh_governance_etl.config import GitHubApiConfig

logger = logging.getLogger(__name__)


class GitHubApiError(Exception):
    """GitHub API 호출 실패."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(f"GitHub API error {status_code}: {message}")


class GitHubNotFoundError(GitHubApiError):
    """404: 리소스 없음 (파일 없음, branch protection 미설정 등)."""


class GitHubApiClient:
    """GitHub REST API 동기 클라이언트."""

    def __init__(self, config: GitHubApiConfig) -> None:
        if not config.token:
            raise RuntimeError("GITHUB_TOKEN이 설정되지 않았습니다")

        self._config = config
        self._client = httpx.Client(
            base_url=config.base_url,
            headers={
                "Authorization": f"Bearer {config.token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": config.user_agent,
            },
            timeout=config.request_timeout_sec,
        )

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """공통 요청 메서드 (요청 → 5xx/timeout 재시도 → JSON 파싱).

        네트워크 오류와 2xx 본문 JSON 파싱 실패도 GitHubApiError로 변환한다.
        """
        max_retries = self._config.max_retries
        backoff_factor = self._config.backoff_factor

        last_exc: Exception | None = None
        for attempt in range(max_retries + 1):
            try:
                resp = self._client.request(method, path, params=params)
            except httpx.TimeoutException as exc:
                last_exc = exc
                if attempt < max_retries:
                    delay = _backoff_wait(attempt, backoff_factor)
                    logger.warning(
                        "Timeout, retry %d/%d in %.1fs: %s",
                        attempt + 1,
                        max_retries,
                        delay,
                        exc,
                    )
                    time.sleep(delay)
                    continue
                raise GitHubApiError(0, f"Timeout after {max_retries} retries: {exc}") from exc
            except httpx.RequestError as exc:
                # 연결 실패, 프로토콜/디코딩 오류는 재시도 없이 status 0으로 감싼다
                raise GitHubApiError(0, f"Transport error: {exc}") from exc

            if resp.status_code == 404:
                raise GitHubNotFoundError(404, f"Not found: {path}")

            # 5xx: 재시도
            if resp.status_code >= 500 and attempt < max_retries:
                delay = _backoff_wait(attempt, backoff_factor)
                logger.warning(
                    "Server error %d, retry %d/%d in %.1fs",
                    resp.status_code,
                    attempt + 1,
                    max_retries,
                    delay,
                )
                time.sleep(delay)
                continue

            # 401/403/429/기타 4xx, 재시도 소진된 5xx
            if resp.status_code >= 400:
                raise GitHubApiError(resp.status_code, _error_message(resp))

            if not resp.content:
                return None
            try:
                return resp.json()
            except ValueError as exc:
                raise GitHubApiError(resp.status_code, f"Invalid JSON response: {path}") from exc

        raise GitHubApiError(0, f"Max retries exceeded: {last_exc}")

    # ── 공개 API 메서드 ──────────────────────────────────────

    def search_org_repos(self, org: str, *, per_page: int = 100) -> list[dict[str, Any]]:
        """GET /search/repositories?q=org:{org} — 첫 페이지의 저장소 목록."""
        data = self._request(
            "GET", "/search/repositories",
            params={"q": f"org:{org}", "per_page": per_page},
        )
        if not isinstance(data, dict):
            return []
        return list(data.get("items") or [])

    def get_content(self, owner: str, repo: str, path: str) -> Any:
        """GET /repos/{owner}/{repo}/contents/{path} — 기본 브랜치 기준 파일 메타데이터."""
        return self._request("GET", f"/repos/{owner}/{repo}/contents/{quote(path)}")

    def list_commits(
        self, owner: str, repo: str, path: str, *, per_page: int = 1,
    ) -> list[dict[str, Any]]:
        """GET /repos/{owner}/{repo}/commits?path= — 해당 경로를 건드린 최근 커밋."""
        data = self._request(
            "GET", f"/repos/{owner}/{repo}/commits",
            params={"path": path, "per_page": per_page},
        )
        return data if isinstance(data, list) else []

    def get_branch_protection(self, owner: str, repo: str, branch: str) -> dict[str, Any]:
        """GET /repos/{owner}/{repo}/branches/{branch}/protection."""
        data = self._request(
            "GET", f"/repos/{owner}/{repo}/branches/{quote(branch, safe='')}/protection",
        )
        return data if isinstance(data, dict) else {}

    def list_languages(self, owner: str, repo: str) -> dict[str, int]:
        """GET /repos/{owner}/{repo}/languages — 언어명 → 바이트 수."""
        data = self._request("GET", f"/repos/{owner}/{repo}/languages")
        return data if isinstance(data, dict) else {}

    def close(self) -> None:
        """httpx.Client를 종료한다."""
        self._client.close()

    def __enter__(self) -> GitHubApiClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


def _error_message(resp: httpx.Response) -> str:
    """에러 응답 본문의 message 필드를 추출한다."""
    try:
        body = resp.json()
    except ValueError:
        return resp.reason_phrase or "unknown error"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return resp.reason_phrase or "unknown error"


def _backoff_wait(attempt: int, backoff_factor: float) -> float:
    """지수 백오프 + 지터 대기 시간을 계산한다."""
    return backoff_factor ** (attempt + 1) + random.uniform(0, 1)
