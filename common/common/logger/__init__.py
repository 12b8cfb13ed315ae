import json
import logging
import os
import sys


DEFAULT_SERVICE_NAME = "cafe-loyalty"

# extra 로 넘어오면 JSON 레코드에 그대로 싣는 필드들
TRACE_KEYS = (
    "request_id",
    "span_id",
    "method",
    "path",
    "query_params",
    "status",
    "duration",
)
DOMAIN_KEYS = (
    "identity",
    "merchant",
    "delta",
    "points",
    "attempt",
)


def setup_logger(name: str = DEFAULT_SERVICE_NAME, level: str | None = None) -> logging.Logger:
    """서비스 로거를 JSON 포맷으로 설정하고 반환한다.

    Args:
        name: 로거 이름 (SERVICE_NAME 환경 변수가 있으면 그 값을 우선한다)
        level: 로그 레벨 (None 이면 LOG_LEVEL 환경 변수, 기본 INFO)
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    log_level = getattr(logging, level.upper(), logging.INFO)

    service_name = os.getenv("SERVICE_NAME", name)
    logger = logging.getLogger(service_name)
    logger.setLevel(log_level)

    # create_app 이 여러 번 호출돼도(테스트 등) 핸들러가 쌓이지 않게 한다.
    if logger.handlers:
        logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    root_logger = logging.getLogger()
    if not root_logger.handlers:
        root_logger.addHandler(handler)
        root_logger.setLevel(log_level)

    return logger


class JsonFormatter(logging.Formatter):
    """한 줄 JSON 로그 포맷터.

    - datetime, level, logger, message 는 항상 포함한다.
    - 요청 추적 필드와 포인트 관련 필드는 extra 로 넘어온 경우에만 싣는다.
    """

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        log_record: dict[str, object] = {
            "datetime": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in TRACE_KEYS + DOMAIN_KEYS:
            if hasattr(record, key):
                log_record[key] = getattr(record, key)

        service_name = getattr(record, "service_name", None) or os.getenv(
            "SERVICE_NAME"
        )
        if service_name:
            log_record["service_name"] = service_name

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_record, ensure_ascii=False, default=str)
