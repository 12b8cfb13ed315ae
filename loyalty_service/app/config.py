from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

import yaml


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE_NAME = "config.yaml"
CONFIG_PATH_ENV = "LOYALTY_CONFIG_PATH"

DEFAULT_CAS_MAX_ATTEMPTS = 16
DEFAULT_STORE_TIMEOUT_SECONDS = 5.0


@dataclass(slots=True, frozen=True)
class LoyaltyConfig:
    """포인트/코드 연산 설정.

    - cas_max_attempts: apply_delta 의 compare-and-set 최대 시도 횟수
    - store_timeout_seconds: 요청 하나가 저장소에 쓸 수 있는 총 시간 (None 이면 무제한)
    """

    cas_max_attempts: int = DEFAULT_CAS_MAX_ATTEMPTS
    store_timeout_seconds: float | None = DEFAULT_STORE_TIMEOUT_SECONDS


@dataclass(slots=True, frozen=True)
class AppConfig:
    loyalty: LoyaltyConfig


def _find_config_path() -> Path | None:
    """LOYALTY_CONFIG_PATH, 없으면 CWD 에서 상위로 올라가며 config.yaml 을 찾는다."""

    explicit = os.getenv(CONFIG_PATH_ENV, "").strip()
    if explicit:
        path = Path(explicit)
        if not path.is_file():
            raise RuntimeError(f"{CONFIG_PATH_ENV} points to a missing file: {path}")
        return path

    current = Path.cwd()
    for directory in (current, *current.parents):
        candidate = directory / DEFAULT_CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
    return None


def parse_loyalty_config(data: dict, *, source: str = "<memory>") -> LoyaltyConfig:
    section = data.get("loyalty") or {}

    raw_attempts = section.get("cas_max_attempts", DEFAULT_CAS_MAX_ATTEMPTS)
    try:
        attempts = int(raw_attempts)
    except (TypeError, ValueError) as exc:  # noqa: TRY003
        raise RuntimeError(
            f"invalid loyalty.cas_max_attempts in {source}: {raw_attempts!r}",
        ) from exc
    if attempts <= 0:
        raise RuntimeError(
            f"loyalty.cas_max_attempts must be positive in {source}: {attempts}"
        )

    raw_timeout = section.get("store_timeout_seconds", DEFAULT_STORE_TIMEOUT_SECONDS)
    timeout: float | None
    if raw_timeout is None:
        timeout = None
    else:
        try:
            timeout = float(raw_timeout)
        except (TypeError, ValueError) as exc:  # noqa: TRY003
            raise RuntimeError(
                f"invalid loyalty.store_timeout_seconds in {source}: {raw_timeout!r}",
            ) from exc
        if timeout <= 0:
            timeout = None

    return LoyaltyConfig(cas_max_attempts=attempts, store_timeout_seconds=timeout)


def load_config() -> AppConfig:
    """loyalty-service 설정을 로드한다. config.yaml 이 없으면 기본값을 쓴다."""

    path = _find_config_path()
    if path is None:
        logger.info("%s not found, using default loyalty settings", DEFAULT_CONFIG_FILE_NAME)
        return AppConfig(loyalty=LoyaltyConfig())

    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return AppConfig(loyalty=parse_loyalty_config(data, source=str(path)))


@lru_cache(maxsize=1)
def get_settings() -> LoyaltyConfig:
    """FastAPI DI 용. 프로세스당 한 번만 읽는다."""

    return load_config().loyalty
