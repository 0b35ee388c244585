"""저장소 거버넌스 레코드 데이터 모델 (Pydantic)."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# branch protection 응답의 설정 키 → RepoRecord 필드 접미사
PROTECTION_FLAGS: dict[str, str] = {
    "enforce_admins": "enforce_admins",
    "required_linear_history": "linear_history",
    "allow_force_pushes": "allow_force_pushes",
    "allow_deletions": "allow_deletions",
    "block_creations": "block_creations",
    "required_conversation_resolution": "required_conversation_resolution",
    "lock_branch": "lock_branch",
    "allow_fork_syncing": "allow_fork_syncing",
}

# CSV 컬럼 순서 = RepoRecord 필드 순서
CSV_COLUMNS: tuple[str, ...] = (
    "repo_full_name",
    "repo_id",
    "readme_root_exists",
    "readme_root_last_commit_timestamp",
    "codeowners_exists",
    "codeowners_file_last_commit_timestamp",
    "branch_protection_enforce_admins",
    "branch_protection_linear_history",
    "branch_protection_allow_force_pushes",
    "branch_protection_allow_deletions",
    "branch_protection_block_creations",
    "branch_protection_required_conversation_resolution",
    "branch_protection_lock_branch",
    "branch_protection_allow_fork_syncing",
    "branch_protection_required_pr_reviews",
    "branch_protection_required_status_checks",
    "language",
)


class ProbeResult(BaseModel):
    """선택적 파일 존재 여부 + 마지막 커밋 시각."""

    model_config = ConfigDict(frozen=True)

    exists: bool
    last_commit_timestamp: str | None = None

    @classmethod
    def missing(cls) -> ProbeResult:
        return cls(exists=False, last_commit_timestamp=None)


class CustomDataEntry(BaseModel):
    """custom data 저장소의 (reference, key) -> value 한 건."""

    model_config = ConfigDict(frozen=True)

    reference: str
    key: str
    value: dict[str, Any]


class RepoRecord(BaseModel):
    """저장소 1개의 거버넌스 신호.

    - repo_full_name / repo_id만 필수, 나머지는 독립적으로 선택 필드
    - 산출물 부재(README 없음, branch protection 미설정)는 False/None으로 표현
    - 필드명은 CSV 컬럼명과 동일 (extra="forbid"로 필드 추가/누락 방지)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    repo_full_name: str = Field(..., description="run 내 고유 키, custom data reference")
    repo_id: int
    readme_root_exists: bool = False
    readme_root_last_commit_timestamp: str | None = None
    codeowners_exists: bool = False
    codeowners_file_last_commit_timestamp: str | None = None
    branch_protection_enforce_admins: bool | None = None
    branch_protection_linear_history: bool | None = None
    branch_protection_allow_force_pushes: bool | None = None
    branch_protection_allow_deletions: bool | None = None
    branch_protection_block_creations: bool | None = None
    branch_protection_required_conversation_resolution: bool | None = None
    branch_protection_lock_branch: bool | None = None
    branch_protection_allow_fork_syncing: bool | None = None
    branch_protection_required_pr_reviews: dict[str, Any] | None = None
    branch_protection_required_status_checks: dict[str, Any] | None = None
    language: dict[str, int] | None = None

    @classmethod
    def from_sources(
        cls,
        repo: dict[str, Any],
        *,
        readme: ProbeResult,
        codeowners: ProbeResult,
        protection: dict[str, Any] | None,
        languages: dict[str, int] | None,
    ) -> RepoRecord:
        """GitHub API 응답들을 평탄화하여 RepoRecord를 만든다.

        protection의 각 boolean 설정은 ``<setting>.enabled``에서 읽는다.
        중첩 객체(required_pull_request_reviews, required_status_checks)는 그대로 보관한다.
        """
        protection = protection or {}
        flags: dict[str, bool | None] = {}
        for api_key, suffix in PROTECTION_FLAGS.items():
            setting = protection.get(api_key)
            flags[f"branch_protection_{suffix}"] = (
                setting.get("enabled") if isinstance(setting, dict) else None
            )

        return cls(
            repo_full_name=repo["full_name"],
            repo_id=repo["id"],
            readme_root_exists=readme.exists,
            readme_root_last_commit_timestamp=readme.last_commit_timestamp,
            codeowners_exists=codeowners.exists,
            codeowners_file_last_commit_timestamp=codeowners.last_commit_timestamp,
            branch_protection_required_pr_reviews=protection.get("required_pull_request_reviews"),
            branch_protection_required_status_checks=protection.get("required_status_checks"),
            language=languages,
            **flags,
        )
