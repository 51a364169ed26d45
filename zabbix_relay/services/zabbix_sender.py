"""
Zabbix 发送器

将一个 Zabbix 端点与 trapper、HTTPS 两种传输方式绑定在一起。
两种传输互不依赖，只共享数据模型。
"""

from typing import Optional, Sequence

from zabbix_relay.config import AlertPushConfig, Settings, TrapperConfig
from zabbix_relay.models.alert import AlertMetric, AlertPacket
from zabbix_relay.models.metric import Metric, Packet
from zabbix_relay.models.response import PushResponse, TrapperResponse
from zabbix_relay.models.sender import Sender
from zabbix_relay.services.alert_push_client import AlertPushClient
from zabbix_relay.services.trapper_client import Connector, TrapperClient


class ZabbixSender:
    """
    Zabbix 发送器

    创建后只读，没有可变的共享状态，可以被多个协程并发使用。
    """

    __slots__ = ("_endpoint", "_trapper", "_pusher")

    def __init__(
        self,
        host: str,
        port: int = 10051,
        trapper_config: Optional[TrapperConfig] = None,
        push_config: Optional[AlertPushConfig] = None,
        connector: Optional[Connector] = None
    ):
        """
        初始化发送器

        Args:
            host: Zabbix 主机
            port: 端口
            trapper_config: trapper 配置
            push_config: HTTPS 推送配置
            connector: 自定义 TCP 连接函数
        """
        self._endpoint = Sender(host=host, port=port)
        self._trapper = TrapperClient(trapper_config, connector=connector)
        self._pusher = AlertPushClient(push_config)

    @classmethod
    def from_settings(cls, app_settings: Settings) -> "ZabbixSender":
        """根据应用配置创建发送器"""
        return cls(
            host=app_settings.trapper.host,
            port=app_settings.trapper.port,
            trapper_config=app_settings.trapper,
            push_config=app_settings.alert_push
        )

    @property
    def endpoint(self) -> Sender:
        return self._endpoint

    @property
    def host(self) -> str:
        return self._endpoint.host

    @property
    def port(self) -> int:
        return self._endpoint.port

    def __repr__(self) -> str:
        return f"ZabbixSender(host={self.host!r}, port={self.port})"

    # ========== trapper ==========

    async def send(self, packet: Packet) -> bytes:
        """通过 trapper 协议发送报文，返回原始应答"""
        return await self._trapper.send(self._endpoint, packet)

    async def send_metrics(self, metrics: Sequence[Metric], clock: Optional[int] = None) -> TrapperResponse:
        """发送指标并解析应答"""
        return await self._trapper.send_metrics(self._endpoint, metrics, clock=clock)

    # ========== HTTPS ==========

    async def alert_send(self, packet: AlertPacket, subpath: Optional[str] = None) -> PushResponse:
        """推送告警批次(不签名)"""
        return await self._pusher.alert_send(self._endpoint, packet, subpath)

    async def alert_metric_send(
        self,
        metric: AlertMetric,
        subpath: Optional[str] = None,
        verification_code: Optional[str] = None
    ) -> PushResponse:
        """推送单条告警(签名)"""
        return await self._pusher.alert_metric_send(
            self._endpoint, metric, subpath, verification_code
        )
