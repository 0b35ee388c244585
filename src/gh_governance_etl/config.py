"""YAML 설정 로딩 + Pydantic 모델."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config.yaml"


# ── 설정 모델 ──────────────────────────────────────────


class GitHubApiConfig(BaseModel):
    base_url: str = "https://api.github.com"
    token: str = ""
    request_timeout_sec: float = 30.0
    max_retries: int = Field(default=3, ge=0)
    backoff_factor: float = 2.0
    user_agent: str = "gh-governance-etl/0.1.0"


class CustomDataConfig(BaseModel):
    base_url: str = ""
    api_token: str = ""
    request_timeout_sec: float = 30.0


class CollectorConfig(BaseModel):
    readme_path: str = "README.md"
    codeowners_paths: list[str] = Field(
        default_factory=lambda: [".github/CODEOWNERS", "CODEOWNERS"],
    )
    page_size: int = Field(default=1000, ge=1)
    csv_path: str = "github_data.csv"

    @field_validator("codeowners_paths")
    @classmethod
    def codeowners_paths_not_empty(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("codeowners_paths must contain at least one path")
        return v


class AppConfig(BaseModel):
    """애플리케이션 전체 설정."""

    github: GitHubApiConfig = Field(default_factory=GitHubApiConfig)
    custom_data: CustomDataConfig = Field(default_factory=CustomDataConfig)
    collector: CollectorConfig = Field(default_factory=CollectorConfig)


# ── 로딩 ───────────────────────────────────────────────


def load_config(path: Path | None = None) -> AppConfig:
    """YAML 설정 파일을 로딩하고 Pydantic 모델로 검증한다.

    환경변수 우선순위: 시스템 환경변수 > .env 파일 > config.yaml 기본값
    경로를 지정하지 않았고 기본 config.yaml도 없으면 모델 기본값을 사용한다.
    """
    config_path = path or _DEFAULT_CONFIG_PATH

    dotenv_path = config_path.parent / ".env"
    load_dotenv(dotenv_path=dotenv_path, override=False)

    if path is None and not config_path.exists():
        raw: dict = {}
    else:
        with open(config_path) as f:
            raw = yaml.safe_load(f)

        if raw is None:
            raise ValueError(f"Empty config file: {config_path}")

    # 환경변수 오버라이드 (토큰은 config.yaml에 두지 않는다)
    if github_token := os.environ.get("GITHUB_TOKEN"):
        raw.setdefault("github", {})
        raw["github"]["token"] = github_token

    if dx_token := os.environ.get("DX_API_KEY"):
        raw.setdefault("custom_data", {})
        raw["custom_data"]["api_token"] = dx_token

    if dx_url := os.environ.get("DX_URL"):
        raw.setdefault("custom_data", {})
        raw["custom_data"]["base_url"] = dx_url

    return AppConfig.model_validate(raw)
