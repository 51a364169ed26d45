"""
日志配置

支持 text 和 json 两种输出格式，json 格式每行一条记录。
"""

import json
import logging
import sys
from typing import Optional

from zabbix_relay.config import LoggingConfig, settings

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# 传输层库只保留警告以上
QUIET_LOGGERS = ("httpx", "httpcore")


class JsonLineFormatter(logging.Formatter):
    """按 JSON 行输出日志，消息中的引号和换行会被转义"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record),
            "name": record.name,
            "level": record.levelname,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def build_formatter(log_format: str) -> logging.Formatter:
    """根据配置的格式名创建 Formatter"""
    if log_format == "text":
        return logging.Formatter(TEXT_FORMAT)
    return JsonLineFormatter()


def setup_logging(config: Optional[LoggingConfig] = None):
    """配置根日志"""
    config = config or settings.logging

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter(config.format))

    logging.basicConfig(
        level=getattr(logging, config.level.upper()),
        handlers=[handler],
        force=True
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
