"""RepoRecord → CSV 직렬화 및 파일 sink."""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import orjson

from gh_governance_etl.models import CSV_COLUMNS, RepoRecord

logger = logging.getLogger(__name__)


def _format_field(value: Any) -> str:
    """None → 빈 값, bool → true/false, dict/list → compact JSON."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return orjson.dumps(value).decode()
    return str(value)


def serialize_csv(records: Iterable[RepoRecord]) -> str:
    """헤더(17개 컬럼) + 레코드별 1행의 CSV 텍스트를 만든다.

    쉼표, 따옴표, 개행을 포함한 값은 따옴표로 감싸고 내부 따옴표는 두 번 쓴다.
    행 구분은 LF이고 마지막 행 뒤에는 개행을 붙이지 않는다.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for record in records:
        writer.writerow([_format_field(getattr(record, col)) for col in CSV_COLUMNS])
    return buf.getvalue().removesuffix("\n")


class CsvSink:
    """레코드를 도착 순서대로 버퍼링했다가 finalize 시 한 번에 파일로 쓴다."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.records: list[RepoRecord] = []
        self.errors: list[str] = []

    def write(self, record: RepoRecord) -> None:
        self.records.append(record)

    def finalize(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8", newline="") as f:
                f.write(serialize_csv(self.records))
        except OSError as exc:
            self.errors.append(f"csv write failed: {exc}")
            logger.error(
                "Failed to write CSV %s: %s", self.path, exc,
                extra={"event_code": "CSV_WRITE_ERROR"},
            )
            return

        logger.info(
            "Wrote CSV: %s (%d rows)", self.path, len(self.records),
            extra={"event_code": "CSV_WRITTEN", "counts": {"rows": len(self.records)}},
        )
