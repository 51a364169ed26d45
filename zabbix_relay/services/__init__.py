"""
服务模块
"""

from .trapper_client import TrapperClient
from .alert_push_client import AlertPushClient
from .zabbix_sender import ZabbixSender

__all__ = [
    "TrapperClient",
    "AlertPushClient",
    "ZabbixSender",
]
