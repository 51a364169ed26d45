"""
trapper 协议集成测试

本地测试服务器按 trapper 协议收发数据；真实 Zabbix 的测试需要显式开启。
"""

import asyncio
import json
import os
import socket
import struct

import pytest

from zabbix_relay.config import TrapperConfig
from zabbix_relay.exceptions import ConnectError
from zabbix_relay.models import Metric, Packet
from zabbix_relay.services.zabbix_sender import ZabbixSender


# 检查是否在集成测试环境中
ZABBIX_HOST = os.getenv("ZABBIX_TRAPPER_HOST", "localhost")
ZABBIX_PORT = int(os.getenv("ZABBIX_TRAPPER_PORT", "10051"))
SKIP_INTEGRATION = os.getenv("SKIP_INTEGRATION_TESTS", "true").lower() == "true"


class TestTrapperStub:
    """本地 trapper 服务器端到端测试"""

    @pytest.mark.asyncio
    async def test_metric_arrives_intact(self, trapper_stub, trapper_reply):
        """指标按协议到达服务端，并能还原为等价报文"""
        packet = Packet(
            data=[Metric(host="srv1", key="cpu.load", value="0.42")],
            clock=1700000000
        )

        async with trapper_stub() as (port, received):
            sender = ZabbixSender("127.0.0.1", port)
            response = await sender.send(packet)

        assert response == trapper_reply
        assert len(received) == 1

        frame = received[0]
        assert frame[:5] == b"ZBXD\x01"
        (length,) = struct.unpack("<Q", frame[5:13])
        assert length == len(frame[13:])

        restored = Packet.model_validate(json.loads(frame[13:]))
        assert restored == packet
        assert restored.request == "sender data"

    @pytest.mark.asyncio
    async def test_concurrent_sends_share_sender(self, trapper_stub):
        """同一个发送器并发发送，每次独立连接"""
        packets = [
            Packet(data=[Metric(host="srv1", key="k", value=str(i), clock=1)], clock=1)
            for i in range(5)
        ]

        async with trapper_stub() as (port, received):
            sender = ZabbixSender("127.0.0.1", port)
            results = await asyncio.gather(*(sender.send(p) for p in packets))

        assert len(results) == 5
        values = sorted(json.loads(frame[13:])["data"][0]["value"] for frame in received)
        assert values == ["0", "1", "2", "3", "4"]

    @pytest.mark.asyncio
    async def test_send_metrics_parses_reply(self, trapper_stub):
        async with trapper_stub() as (port, _):
            sender = ZabbixSender("127.0.0.1", port)
            result = await sender.send_metrics([Metric(host="srv1", key="cpu.load", value="0.42")])

        assert result.success is True
        assert result.total == 1

    @pytest.mark.asyncio
    async def test_connection_refused(self, sample_packet):
        """端口未监听时返回连接错误"""
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(("127.0.0.1", 0))
            port = sock.getsockname()[1]

        sender = ZabbixSender("127.0.0.1", port, trapper_config=TrapperConfig(connect_timeout=2.0))

        with pytest.raises(ConnectError):
            await sender.send(sample_packet)


@pytest.mark.skipif(SKIP_INTEGRATION, reason="Integration tests disabled")
class TestZabbixIntegration:
    """真实 Zabbix trapper 测试"""

    @pytest.mark.asyncio
    async def test_real_send(self):
        host = os.getenv("ZABBIX_TEST_HOST", "Zabbix server")
        key = os.getenv("ZABBIX_TEST_KEY", "trap.test")

        sender = ZabbixSender(ZABBIX_HOST, ZABBIX_PORT)
        result = await sender.send_metrics([Metric(host=host, key=key, value="1")])

        assert result.response == "success"
