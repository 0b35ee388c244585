"""GitHub org 저장소 거버넌스 신호 수집 ETL."""

__version__ = "0.1.0"
