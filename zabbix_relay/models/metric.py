"""
Zabbix trapper 指标数据模型
"""

import time
from typing import Any, Literal, Optional, Sequence, Tuple

from pydantic import Field, field_validator

from zabbix_relay.models.base import WireModel

SENDER_DATA_REQUEST = "sender data"


def current_clock() -> int:
    """当前 unix 时间戳(秒)"""
    return int(time.time())


class Metric(WireModel):
    """单条 trapper 指标"""

    host: str = Field(..., description="Zabbix 中配置的主机名")
    key: str = Field(..., description="监控项 key")
    value: str = Field(..., description="监控值")
    clock: int = Field(default_factory=current_clock, description="采集时间(unix 秒)")

    @field_validator("value", mode="before")
    @classmethod
    def _stringify_value(cls, value: Any) -> Any:
        # 数值统一按字符串发送，布尔值不是监控值
        if isinstance(value, bool):
            raise ValueError("boolean is not a valid metric value")
        if isinstance(value, (int, float)):
            return str(value)
        return value


class Packet(WireModel):
    """trapper 指标提交报文"""

    request: Literal["sender data"] = Field(default=SENDER_DATA_REQUEST, description="请求类型")
    data: Tuple[Metric, ...] = Field(default_factory=tuple, description="指标列表")
    clock: int = Field(default_factory=current_clock, description="报文时间(unix 秒)")

    @classmethod
    def from_metrics(cls, metrics: Sequence[Metric], clock: Optional[int] = None) -> "Packet":
        """由指标列表构造报文，未指定 clock 时使用当前时间"""
        if clock is None:
            return cls(data=tuple(metrics))
        return cls(data=tuple(metrics), clock=clock)
