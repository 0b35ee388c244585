"""RepoRecord ↔ custom data 항목 변환 및 export sink.

레코드 1건은 항상 14개 항목으로 펼쳐진다 (reference = repo_full_name).

| key                              | value                                                |
|----------------------------------|------------------------------------------------------|
| readme.exists                    | {"exists": bool}                                     |
| readme.last_commit               | {"timestamp": str | null}                            |
| codeowners.exists                | {"exists": bool}                                     |
| codeowners.last_commit           | {"timestamp": str | null}                            |
| branch_protection.<setting> (x8) | {"<setting>": bool | null}                           |
| branch_protection.review_rules   | {"required_pr_reviews": ..., "required_status_checks": ...} |
| language.bytes                   | {"languages": {name: bytes} | null}                  |
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

import httpx

from gh_governance_etl.custom_data import CustomDataApiError, CustomDataClient
from gh_governance_etl.models import PROTECTION_FLAGS, CustomDataEntry, RepoRecord

logger = logging.getLogger(__name__)

ENTRIES_PER_RECORD = 14

_REVIEW_RULES_KEY = "branch_protection.review_rules"
_LANGUAGE_KEY = "language.bytes"


def build_entries(record: RepoRecord) -> list[CustomDataEntry]:
    """RepoRecord를 custom data 항목 14개로 펼친다."""
    ref = record.repo_full_name
    entries = [
        CustomDataEntry(reference=ref, key="readme.exists",
                        value={"exists": record.readme_root_exists}),
        CustomDataEntry(reference=ref, key="readme.last_commit",
                        value={"timestamp": record.readme_root_last_commit_timestamp}),
        CustomDataEntry(reference=ref, key="codeowners.exists",
                        value={"exists": record.codeowners_exists}),
        CustomDataEntry(reference=ref, key="codeowners.last_commit",
                        value={"timestamp": record.codeowners_file_last_commit_timestamp}),
    ]
    for suffix in PROTECTION_FLAGS.values():
        entries.append(
            CustomDataEntry(
                reference=ref,
                key=f"branch_protection.{suffix}",
                value={suffix: getattr(record, f"branch_protection_{suffix}")},
            )
        )
    entries.append(
        CustomDataEntry(
            reference=ref,
            key=_REVIEW_RULES_KEY,
            value={
                "required_pr_reviews": record.branch_protection_required_pr_reviews,
                "required_status_checks": record.branch_protection_required_status_checks,
            },
        )
    )
    entries.append(
        CustomDataEntry(reference=ref, key=_LANGUAGE_KEY, value={"languages": record.language})
    )
    return entries


def fold_entries(entries: Iterable[CustomDataEntry], *, repo_id: int) -> RepoRecord:
    """build_entries의 역변환. 항목 순서는 무관하다.

    저장소는 reference 기준이므로 repo_id는 호출자가 넘긴다.

    Raises:
        ValueError: reference가 섞여 있거나 항목이 비어 있는 경우
    """
    by_key = {entry.key: entry for entry in entries}
    references = {entry.reference for entry in by_key.values()}
    if len(references) != 1:
        raise ValueError(f"Expected entries for exactly one reference, got {sorted(references)}")

    def value(key: str, field_name: str) -> Any:
        entry = by_key.get(key)
        return entry.value.get(field_name) if entry else None

    fields = {
        "repo_full_name": references.pop(),
        "repo_id": repo_id,
        "readme_root_exists": bool(value("readme.exists", "exists")),
        "readme_root_last_commit_timestamp": value("readme.last_commit", "timestamp"),
        "codeowners_exists": bool(value("codeowners.exists", "exists")),
        "codeowners_file_last_commit_timestamp": value("codeowners.last_commit", "timestamp"),
        "branch_protection_required_pr_reviews": value(_REVIEW_RULES_KEY, "required_pr_reviews"),
        "branch_protection_required_status_checks": value(_REVIEW_RULES_KEY, "required_status_checks"),
        "language": value(_LANGUAGE_KEY, "languages"),
    }
    for suffix in PROTECTION_FLAGS.values():
        fields[f"branch_protection_{suffix}"] = value(f"branch_protection.{suffix}", suffix)
    return RepoRecord(**fields)


class CustomDataSink:
    """저장소마다 즉시 14개 항목을 setAll로 전송한다.

    실패는 저장소 단위로 기록만 하고 다음 저장소를 계속 처리한다 (재시도/롤백 없음).
    """

    def __init__(self, client: CustomDataClient) -> None:
        self._client = client
        self.batches_sent = 0
        self.errors: list[str] = []

    def write(self, record: RepoRecord) -> None:
        entries = build_entries(record)
        try:
            self._client.set_all(entries)
        except (CustomDataApiError, httpx.HTTPError) as exc:
            self.errors.append(f"{record.repo_full_name}: {exc}")
            logger.warning(
                "custom_data.setAll failed for %s: %s", record.repo_full_name, exc,
                extra={"event_code": "EXPORT_ERROR",
                       "repo": record.repo_full_name,
                       "status_code": getattr(exc, "status_code", None)},
            )
            return

        self.batches_sent += 1
        logger.info(
            "custom_data.setAll successful for %s (%d entries)",
            record.repo_full_name, len(entries),
            extra={"event_code": "EXPORTED", "repo": record.repo_full_name},
        )

    def finalize(self) -> None:
        logger.info(
            "Export complete: batches=%d, errors=%d", self.batches_sent, len(self.errors),
            extra={"event_code": "EXPORT_SUMMARY",
                   "counts": {"batches": self.batches_sent, "errors": len(self.errors)}},
        )
