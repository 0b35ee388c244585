"""수집/내보내기 실행 로그 설정.

로그 한 줄은 저장소 단위 진행 상황 하나를 나타낸다. JSON 모드에서는 아래 extra
필드를 최상위 키로 펼쳐서, 실행 로그만으로 어느 저장소의 어느 단계가 실패했는지
집계할 수 있게 한다.

- event_code: REPOS_FOUND, REPO_LIST_ERROR, REPO_COLLECT_ERROR,
  PROTECTION_FETCH_FAILED, EXPORTED, EXPORT_ERROR, EXPORT_SUMMARY,
  CSV_WRITTEN, CSV_WRITE_ERROR, COLLECT_SUMMARY
- repo: 저장소 full name (org/name)
- step: 실패한 수집 단계 (readme, codeowners, branch_protection, languages)
- status_code: GitHub / custom data API 응답 코드 (네트워크 오류는 0)
- counts, duration_ms: 요약 이벤트의 집계 값
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import orjson

PACKAGE_LOGGER = "gh_governance_etl"

_EXTRA_KEYS = ("event_code", "repo", "step", "status_code", "counts", "duration_ms")
_TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """레코드 1건 → JSON 1줄. 값이 None인 extra 필드는 생략한다."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(tz=UTC).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value

        return orjson.dumps(log_entry, default=str).decode()


def setup_logging(*, json_format: bool = True, level: int = logging.INFO) -> None:
    """gh_governance_etl 로거에 stderr 핸들러 하나를 붙인다.

    CLI 명령마다 호출되므로 기존 핸들러는 교체한다. stdout은 요약 줄과
    get-entry 결과 출력에 쓰이므로 로그는 stderr로만 보낸다.

    Args:
        json_format: True이면 JSON 한 줄 포맷, False이면 텍스트 포맷
        level: 로그 레벨
    """
    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    pkg_logger.setLevel(level)
    pkg_logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter() if json_format else logging.Formatter(_TEXT_FORMAT))
    pkg_logger.addHandler(handler)
