"""CSV 직렬화 / CsvSink 테스트."""

from __future__ import annotations

import csv
import io
from pathlib import Path

import pytest

from gh_governance_etl.csv_writer import CsvSink, serialize_csv
from gh_governance_etl.models import CSV_COLUMNS, RepoRecord


def _parse(text: str) -> list[list[str]]:
    return list(csv.reader(io.StringIO(text)))


class TestSerializeCsv:
    def test_header_only(self) -> None:
        rows = _parse(serialize_csv([]))
        assert rows == [list(CSV_COLUMNS)]

    def test_null_and_bool_rendering(self) -> None:
        record = RepoRecord(
            repo_full_name="org/a",
            repo_id=42,
            readme_root_exists=True,
            branch_protection_enforce_admins=False,
        )
        header, row = _parse(serialize_csv([record]))
        values = dict(zip(header, row))
        assert values["repo_id"] == "42"
        assert values["readme_root_exists"] == "true"
        assert values["codeowners_exists"] == "false"
        assert values["branch_protection_enforce_admins"] == "false"
        assert values["branch_protection_lock_branch"] == ""
        assert values["readme_root_last_commit_timestamp"] == ""
        assert values["language"] == ""

    def test_nested_objects_are_single_json_field(self) -> None:
        record = RepoRecord(
            repo_full_name="org/a",
            repo_id=1,
            branch_protection_required_status_checks={"strict": True, "contexts": ["ci/a", "ci/b"]},
            language={"Python": 10, "Shell": 2},
        )
        text = serialize_csv([record])
        # 쉼표를 포함한 JSON은 따옴표로 감싸진다
        assert '"{""strict"":true,""contexts"":[""ci/a"",""ci/b""]}"' in text

        header, row = _parse(text)
        values = dict(zip(header, row))
        assert values["branch_protection_required_status_checks"] == '{"strict":true,"contexts":["ci/a","ci/b"]}'
        assert values["language"] == '{"Python":10,"Shell":2}'

    def test_special_characters_quoted_and_round_trip(self) -> None:
        tricky = 'a,b "quoted"\nnext line'
        record = RepoRecord(repo_full_name=tricky, repo_id=1)
        text = serialize_csv([record])

        assert '"a,b ""quoted""\nnext line"' in text
        _, row = _parse(text)
        assert row[0] == tricky

    def test_lf_rows_without_trailing_newline(self) -> None:
        records = [
            RepoRecord(repo_full_name="org/a", repo_id=1),
            RepoRecord(repo_full_name="org/b", repo_id=2),
        ]
        text = serialize_csv(records)

        assert "\r" not in text
        assert not text.endswith("\n")
        lines = text.split("\n")
        assert len(lines) == 3
        assert lines[0] == ",".join(CSV_COLUMNS)
        assert lines[2].startswith("org/b,2,")

    def test_header_only_has_no_newline(self) -> None:
        assert serialize_csv([]) == ",".join(CSV_COLUMNS)

    def test_row_order_is_arrival_order(self) -> None:
        records = [RepoRecord(repo_full_name=f"org/{n}", repo_id=i) for i, n in enumerate("cab")]
        rows = _parse(serialize_csv(records))
        assert [r[0] for r in rows[1:]] == ["org/c", "org/a", "org/b"]


class TestCsvSink:
    def test_finalize_writes_file(self, tmp_path: Path) -> None:
        path = tmp_path / "out" / "github_data.csv"
        sink = CsvSink(path)
        sink.write(RepoRecord(repo_full_name="org/a", repo_id=1))
        sink.write(RepoRecord(repo_full_name="org/b", repo_id=2))
        sink.finalize()

        assert sink.errors == []
        rows = _parse(path.read_text(encoding="utf-8"))
        assert len(rows) == 3

    def test_write_failure_is_recorded_not_raised(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        # 디렉터리 경로에 파일을 쓰려고 하면 OSError
        sink = CsvSink(tmp_path)
        sink.write(RepoRecord(repo_full_name="org/a", repo_id=1))
        sink.finalize()

        assert len(sink.errors) == 1
        assert "Failed to write CSV" in caplog.text
