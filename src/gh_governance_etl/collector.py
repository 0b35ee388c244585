"""org 저장소 거버넌스 신호 수집기.

저장소를 한 번 조회한 뒤 저장소별로 순차 수집 → RepoRecord 생성 → sink 전달.
- 저장소 목록 조회 실패 시 빈 목록으로 진행
- 저장소별 수집 실패는 해당 저장소만 건너뛰고 계속 진행
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Protocol

from gh_governance_etl.config import CollectorConfig
from gh_governance_etl.github_api import GitHubApiClient, GitHubApiError
from gh_governance_etl.models import RepoRecord
from gh_governance_etl.probes import fetch_branch_protection, probe_file, resolve_first

logger = logging.getLogger(__name__)


class RepoCollectError(Exception):
    """저장소 1개의 수집 단계 실패 (해당 저장소 레코드 생성 중단)."""

    def __init__(self, repo: str, step: str, cause: GitHubApiError):
        self.repo = repo
        self.step = step
        self.cause = cause
        super().__init__(f"{repo}: {step} failed: {cause}")


class RecordSink(Protocol):
    """RepoRecord 소비자 (CSV 파일, custom data 저장소)."""

    errors: list[str]

    def write(self, record: RepoRecord) -> None: ...

    def finalize(self) -> None: ...


@dataclass
class CollectStats:
    """org 수집 통계."""

    org: str
    repos_found: int = 0
    records_built: int = 0
    failed_repos: list[str] = field(default_factory=list)
    duration_ms: float = 0.0


class RepoCollector:
    """org 저장소 거버넌스 신호 수집기.

    저장소별 단계 (순차 실행):
    1. README probe (readme_path)
    2. CODEOWNERS fallback 탐색 (codeowners_paths 순서)
    3. 기본 브랜치 branch protection 조회
    4. 언어별 바이트 수 조회
    5. RepoRecord 생성 후 yield
    """

    def __init__(self, api_client: GitHubApiClient, config: CollectorConfig) -> None:
        self._api = api_client
        self._config = config
        self.stats = CollectStats(org="")

    def collect(self, org: str, page_size: int | None = None) -> Iterator[RepoRecord]:
        """org의 저장소마다 RepoRecord를 하나씩 yield한다."""
        self.stats = CollectStats(org=org)
        start = time.monotonic()

        repos = self._list_repos(org, page_size or self._config.page_size)
        self.stats.repos_found = len(repos)
        logger.info(
            "Found %d repos in organization: %s", len(repos), org,
            extra={"event_code": "REPOS_FOUND", "counts": {"repos": len(repos)}},
        )

        for repo in repos:
            full_name = repo.get("full_name", "?")
            logger.info("Processing repo: %s", full_name, extra={"repo": full_name})
            try:
                record = self._collect_repo(repo)
            except RepoCollectError as exc:
                self.stats.failed_repos.append(full_name)
                logger.error(
                    "Collection failed (repo=%s, step=%s): %s", full_name, exc.step, exc.cause,
                    extra={"event_code": "REPO_COLLECT_ERROR",
                           "repo": full_name,
                           "step": exc.step,
                           "status_code": exc.cause.status_code},
                )
                continue

            self.stats.records_built += 1
            yield record

        self.stats.duration_ms = (time.monotonic() - start) * 1000

    def _list_repos(self, org: str, page_size: int) -> list[dict[str, Any]]:
        try:
            return self._api.search_org_repos(org, per_page=page_size)
        except GitHubApiError as exc:
            logger.warning(
                "API error @ search.repos(org:%s): %s", org, exc,
                extra={"event_code": "REPO_LIST_ERROR",
                       "step": "search_repos",
                       "status_code": exc.status_code},
            )
            return []

    def _collect_repo(self, repo: dict[str, Any]) -> RepoRecord:
        owner = repo["owner"]["login"]
        name = repo["name"]

        step = "readme"
        try:
            readme = probe_file(self._api, owner, name, self._config.readme_path)
            step = "codeowners"
            codeowners = resolve_first(self._api, owner, name, self._config.codeowners_paths)
            step = "branch_protection"
            protection = fetch_branch_protection(self._api, owner, name, repo["default_branch"])
            step = "languages"
            languages = self._api.list_languages(owner, name)
        except GitHubApiError as exc:
            raise RepoCollectError(repo.get("full_name", f"{owner}/{name}"), step, exc) from exc

        return RepoRecord.from_sources(
            repo,
            readme=readme,
            codeowners=codeowners,
            protection=protection,
            languages=languages,
        )


def run_collection(
    collector: RepoCollector,
    sink: RecordSink,
    org: str,
    page_size: int | None = None,
) -> CollectStats:
    """수집 결과를 저장소 단위로 sink에 전달하고, 끝나면 sink를 finalize한다."""
    for record in collector.collect(org, page_size):
        sink.write(record)
    sink.finalize()

    stats = collector.stats
    logger.info(
        "Collection complete: org=%s, repos=%d, records=%d, failed=%d, sink_errors=%d",
        org, stats.repos_found, stats.records_built,
        len(stats.failed_repos), len(sink.errors),
        extra={"event_code": "COLLECT_SUMMARY",
               "counts": {"repos": stats.repos_found,
                          "records": stats.records_built,
                          "failed": len(stats.failed_repos),
                          "sink_errors": len(sink.errors)},
               "duration_ms": stats.duration_ms},
    )
    return stats
