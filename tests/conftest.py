"""공통 fixture."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
import yaml

from gh_governance_etl.github_api import GitHubNotFoundError


def make_repo(full_name: str, repo_id: int, default_branch: str = "main") -> dict[str, Any]:
    """search/repositories 응답의 item 샘플."""
    owner, name = full_name.split("/", 1)
    return {
        "id": repo_id,
        "name": name,
        "full_name": full_name,
        "owner": {"login": owner, "id": 200, "type": "Organization"},
        "default_branch": default_branch,
        "private": False,
    }


def make_commit(date: str) -> dict[str, Any]:
    """commits 응답의 item 샘플."""
    return {
        "sha": "abc123",
        "commit": {
            "message": "update",
            "author": {"name": "dev", "email": "dev@test.com", "date": date},
            "committer": {"name": "dev", "date": date},
        },
    }


@pytest.fixture()
def sample_protection() -> dict[str, Any]:
    """branch protection 응답 샘플 (enforce_admins만 활성)."""
    return {
        "url": "https://api.github.com/repos/org/a/branches/main/protection",
        "required_status_checks": {"strict": True, "contexts": ["ci/build"]},
        "required_pull_request_reviews": {
            "dismiss_stale_reviews": True,
            "require_code_owner_reviews": False,
            "required_approving_review_count": 1,
        },
        "enforce_admins": {"url": "...", "enabled": True},
        "required_linear_history": {"enabled": False},
        "allow_force_pushes": {"enabled": False},
        "allow_deletions": {"enabled": False},
        "block_creations": {"enabled": False},
        "required_conversation_resolution": {"enabled": False},
        "lock_branch": {"enabled": False},
        "allow_fork_syncing": {"enabled": False},
    }


@pytest.fixture()
def scenario_api(sample_protection: dict[str, Any]) -> MagicMock:
    """2개 저장소 org의 mock GitHubApiClient.

    - org/a: README.md(2024-01-01), CODEOWNERS 없음, enforce_admins만 true, {JavaScript: 500}
    - org/b: README 없음, .github/CODEOWNERS(2023-06-01), protection 없음, 언어 {}
    """
    files = {
        ("a", "README.md"): "2024-01-01T00:00:00Z",
        ("b", ".github/CODEOWNERS"): "2023-06-01T00:00:00Z",
    }
    protections = {"a": sample_protection}
    languages = {"a": {"JavaScript": 500}, "b": {}}

    def get_content(owner: str, repo: str, path: str) -> dict[str, Any]:
        if (repo, path) not in files:
            raise GitHubNotFoundError(404, f"Not found: {path}")
        return {"type": "file", "path": path}

    def list_commits(owner: str, repo: str, path: str, *, per_page: int = 1) -> list[dict[str, Any]]:
        return [make_commit(files[(repo, path)])]

    def get_branch_protection(owner: str, repo: str, branch: str) -> dict[str, Any]:
        if repo not in protections:
            raise GitHubNotFoundError(404, "Branch not protected")
        return protections[repo]

    api = MagicMock()
    api.search_org_repos.return_value = [make_repo("org/a", 1), make_repo("org/b", 2)]
    api.get_content.side_effect = get_content
    api.list_commits.side_effect = list_commits
    api.get_branch_protection.side_effect = get_branch_protection
    api.list_languages.side_effect = lambda owner, repo: languages[repo]
    return api


@pytest.fixture()
def sample_config_data() -> dict[str, Any]:
    """테스트용 config dict."""
    return {
        "github": {
            "base_url": "https://api.github.com",
            "request_timeout_sec": 10,
            "max_retries": 2,
            "backoff_factor": 0.01,
        },
        "custom_data": {"base_url": "https://dx.example.com"},
        "collector": {
            "readme_path": "README.md",
            "codeowners_paths": [".github/CODEOWNERS", "CODEOWNERS"],
            "page_size": 50,
            "csv_path": "out.csv",
        },
    }


@pytest.fixture()
def tmp_config_file(tmp_path: Path, sample_config_data: dict[str, Any]) -> Path:
    """임시 YAML 설정 파일."""
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.dump(sample_config_data), encoding="utf-8")
    return config_path


@pytest.fixture(autouse=True)
def _clear_token_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """실행 환경의 토큰이 테스트에 섞이지 않도록 제거."""
    for name in ("GITHUB_TOKEN", "DX_API_KEY", "DX_URL"):
        monkeypatch.delenv(name, raising=False)
