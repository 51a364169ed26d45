"""
数据模型模块
"""

from .metric import Metric, Packet
from .alert import (
    AlertMetric,
    AlertPacket,
    ContentType,
    MailBody,
    MailMessage,
    MailMessageType,
)
from .sender import Sender, ResolvedAddress
from .response import TrapperResponse, PushResponse

__all__ = [
    "Metric",
    "Packet",
    "AlertMetric",
    "AlertPacket",
    "ContentType",
    "MailBody",
    "MailMessage",
    "MailMessageType",
    "Sender",
    "ResolvedAddress",
    "TrapperResponse",
    "PushResponse",
]
