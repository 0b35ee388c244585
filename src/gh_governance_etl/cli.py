"""click CLI 엔트리포인트.

gh-governance-etl collect --org my-org                       # CSV 출력
gh-governance-etl collect --org my-org --output kv           # custom data export
gh-governance-etl get-entry --reference my-org/repo --key readme.exists
gh-governance-etl delete-entry --reference my-org/repo --key readme.exists
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
import orjson

from gh_governance_etl import __version__
from gh_governance_etl.collector import RecordSink, RepoCollector, run_collection
from gh_governance_etl.config import load_config
from gh_governance_etl.csv_writer import CsvSink
from gh_governance_etl.custom_data import CustomDataApiError, CustomDataClient
from gh_governance_etl.exporter import CustomDataSink
from gh_governance_etl.github_api import GitHubApiClient
from gh_governance_etl.logging_config import setup_logging

logger = logging.getLogger(__name__)

_config_option = click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(exists=True, path_type=Path),
    help="설정 파일 경로 (기본: 프로젝트 루트 config.yaml)",
)
_json_log_option = click.option(
    "--json-log/--no-json-log", default=False, help="JSON 로그 포맷 (기본: 텍스트)",
)


@click.group()
@click.version_option(version=__version__, prog_name="gh-governance-etl")
def main() -> None:
    """GitHub org 저장소의 거버넌스 신호(README, CODEOWNERS, branch protection, 언어)를 수집합니다."""


@main.command()
@click.option("--org", required=True, help="수집 대상 GitHub organization")
@click.option(
    "--output",
    type=click.Choice(["csv", "kv"]),
    default="csv",
    help="출력 모드 (csv: CSV 파일, kv: custom data 저장소, 기본: csv)",
)
@click.option(
    "--page-size", "--pageSize", "page_size",
    default=None, type=click.IntRange(min=1),
    help="GitHub 검색 결과 페이지 크기 (기본: config의 collector.page_size)",
)
@click.option(
    "--csv", "csv_path",
    default=None, type=click.Path(dir_okay=False, path_type=Path),
    help="--output=csv일 때 CSV 출력 경로 (기본: github_data.csv)",
)
@_config_option
@_json_log_option
def collect(
    org: str,
    output: str,
    page_size: int | None,
    csv_path: Path | None,
    config_path: Path | None,
    json_log: bool,
) -> None:
    """org의 모든 저장소를 순회하며 레코드를 만들어 CSV 또는 custom data로 내보냅니다."""
    setup_logging(json_format=json_log)
    config = load_config(config_path)

    try:
        api = GitHubApiClient(config.github)
    except RuntimeError as exc:
        click.echo(f"GitHub auth error: {exc}", err=True)
        sys.exit(1)

    kv_client: CustomDataClient | None = None
    sink: RecordSink
    if output == "kv":
        try:
            kv_client = CustomDataClient(config.custom_data)
        except RuntimeError as exc:
            api.close()
            click.echo(f"Custom data auth error: {exc}", err=True)
            sys.exit(1)
        sink = CustomDataSink(kv_client)
    else:
        sink = CsvSink(csv_path or Path(config.collector.csv_path))

    try:
        collector = RepoCollector(api, config.collector)
        stats = run_collection(collector, sink, org, page_size or config.collector.page_size)
    finally:
        api.close()
        if kv_client is not None:
            kv_client.close()

    summary_msg = (
        f"Collect complete: org={org}, output={output}, "
        f"repos={stats.repos_found}, records={stats.records_built}, "
        f"failed_repos={len(stats.failed_repos)}, sink_errors={len(sink.errors)}, "
        f"duration={stats.duration_ms:.0f}ms"
    )
    if isinstance(sink, CsvSink) and not sink.errors:
        summary_msg += f", csv={sink.path}"
    click.echo(summary_msg)

    if stats.failed_repos:
        click.echo(f"Failed repos: {', '.join(stats.failed_repos)}", err=True)
    for error in sink.errors:
        click.echo(f"Sink error: {error}", err=True)

    if stats.failed_repos or sink.errors:
        sys.exit(1)


@main.command("get-entry")
@click.option("--reference", required=True, help="저장소 full name (예: my-org/repo)")
@click.option("--key", required=True, help="항목 key (예: readme.exists)")
@_config_option
@_json_log_option
def get_entry(reference: str, key: str, config_path: Path | None, json_log: bool) -> None:
    """custom data 항목 하나를 조회해 JSON으로 출력합니다."""
    setup_logging(json_format=json_log)
    config = load_config(config_path)

    try:
        with CustomDataClient(config.custom_data) as client:
            value = client.get(reference, key)
    except (RuntimeError, CustomDataApiError) as exc:
        click.echo(f"Custom data error: {exc}", err=True)
        sys.exit(1)

    if value is None:
        click.echo(f"Not found: {reference} {key}", err=True)
        sys.exit(1)
    click.echo(orjson.dumps(value, option=orjson.OPT_INDENT_2).decode())


@main.command("delete-entry")
@click.option("--reference", required=True, help="저장소 full name (예: my-org/repo)")
@click.option("--key", required=True, help="항목 key (예: readme.exists)")
@_config_option
@_json_log_option
def delete_entry(reference: str, key: str, config_path: Path | None, json_log: bool) -> None:
    """custom data 항목 하나를 삭제합니다."""
    setup_logging(json_format=json_log)
    config = load_config(config_path)

    try:
        with CustomDataClient(config.custom_data) as client:
            client.delete(reference, key)
    except (RuntimeError, CustomDataApiError) as exc:
        click.echo(f"Custom data error: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Deleted: {reference} {key}")
