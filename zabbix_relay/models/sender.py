"""
Zabbix 端点模型
"""

import socket
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field


class Sender(BaseModel):
    """
    Zabbix 端点(主机 + 端口)

    不可变，可在并发调用间共享。
    """

    model_config = ConfigDict(frozen=True)

    host: str = Field(..., min_length=1, description="主机名或 IP")
    port: int = Field(default=10051, ge=1, le=65535, description="端口")

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


class ResolvedAddress(NamedTuple):
    """解析后的 TCP 地址"""

    ip: str
    port: int
    family: int = socket.AF_INET

    @property
    def netloc(self) -> str:
        """URL 中使用的 host:port，IPv6 地址加方括号"""
        if self.family == socket.AF_INET6:
            return f"[{self.ip}]:{self.port}"
        return f"{self.ip}:{self.port}"
