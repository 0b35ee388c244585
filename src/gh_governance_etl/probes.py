"""선택적 산출물 조회 (README, CODEOWNERS, branch protection).

"없음"(404)은 정상 결과로 취급한다.
- probe_file: 파일 존재 여부 + 마지막 커밋 시각, 404 외 에러는 전파
- resolve_first: 후보 경로를 순서대로 probe, 첫 번째로 존재하는 결과 반환
- fetch_branch_protection: 404와 그 외 에러 모두 None (로그 레벨로만 구분)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from gh_governance_etl.github_api import GitHubApiClient, GitHubApiError, GitHubNotFoundError
from gh_governance_etl.models import ProbeResult

logger = logging.getLogger(__name__)


def probe_file(api: GitHubApiClient, owner: str, repo: str, path: str) -> ProbeResult:
    """기본 브랜치에서 path 파일의 존재 여부와 마지막 커밋 시각을 조회한다.

    Raises:
        GitHubApiError: 404 이외의 API 에러
    """
    try:
        api.get_content(owner, repo, path)
    except GitHubNotFoundError:
        logger.info("No %s file found (repo=%s/%s)", path, owner, repo)
        return ProbeResult.missing()

    commits = api.list_commits(owner, repo, path, per_page=1)
    timestamp = _commit_author_date(commits[0]) if commits else None
    logger.info("%s file found (repo=%s/%s)", path, owner, repo)
    return ProbeResult(exists=True, last_commit_timestamp=timestamp)


def resolve_first(
    api: GitHubApiClient, owner: str, repo: str, candidates: Sequence[str],
) -> ProbeResult:
    """후보 경로 중 처음으로 존재하는 파일의 결과를 반환한다 (없으면 missing)."""
    for path in candidates:
        result = probe_file(api, owner, repo, path)
        if result.exists:
            return result
    return ProbeResult.missing()


def fetch_branch_protection(
    api: GitHubApiClient, owner: str, repo: str, branch: str,
) -> dict[str, Any] | None:
    """branch protection 설정을 조회한다. 미설정 또는 조회 실패 시 None."""
    try:
        protection = api.get_branch_protection(owner, repo, branch)
    except GitHubNotFoundError:
        logger.info("No branch protection on %s/%s@%s", owner, repo, branch)
        return None
    except GitHubApiError as exc:
        logger.warning(
            "Failed to fetch branch protection for %s/%s@%s: %s",
            owner, repo, branch, exc,
            extra={"event_code": "PROTECTION_FETCH_FAILED",
                   "repo": f"{owner}/{repo}",
                   "step": "branch_protection",
                   "status_code": exc.status_code},
        )
        return None

    logger.info("Branch protection data found (repo=%s/%s@%s)", owner, repo, branch)
    return protection


def _commit_author_date(commit: dict[str, Any]) -> str | None:
    return ((commit.get("commit") or {}).get("author") or {}).get("date")
