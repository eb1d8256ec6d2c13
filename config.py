"""
설정 모듈

환경 변수에서 Supabase 접속 정보와 로그 레벨을 읽습니다.
"""

import logging
import os
from dataclasses import dataclass

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class AppConfig:
    supabase_url: str
    supabase_key: str
    request_timeout: float
    log_level: str


def load_config(require_store: bool = True) -> AppConfig:
    """
    환경 변수에서 설정을 읽어 AppConfig로 반환합니다.

    Args:
        require_store: True면 SUPABASE_URL / SUPABASE_KEY가 없을 때 에러

    Raises:
        ValueError: 필수 값이 없거나 REQUEST_TIMEOUT이 숫자가 아닐 때
    """
    supabase_url = os.getenv("SUPABASE_URL", "").rstrip("/")
    supabase_key = os.getenv("SUPABASE_KEY", "")

    if require_store and not (supabase_url and supabase_key):
        raise ValueError("SUPABASE_URL 과 SUPABASE_KEY 환경 변수를 설정해주세요.")

    timeout = os.getenv("REQUEST_TIMEOUT", "10")
    try:
        request_timeout = float(timeout)
    except ValueError:
        raise ValueError(f"REQUEST_TIMEOUT 값이 올바르지 않습니다: {timeout!r}") from None

    return AppConfig(
        supabase_url=supabase_url,
        supabase_key=supabase_key,
        request_timeout=request_timeout,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def setup_logging(level: str = "INFO") -> None:
    """루트 로거를 한 번만 설정합니다."""
    root = logging.getLogger()
    if root.handlers:
        return
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
