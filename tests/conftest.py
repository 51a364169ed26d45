"""
Pytest 配置和共享 Fixtures

提供测试所需的模拟数据、假连接和 trapper 测试服务器。
"""

import asyncio
import json
import struct
from contextlib import asynccontextmanager
from typing import List, Tuple

import pytest

from zabbix_relay.models import (
    AlertMetric,
    AlertPacket,
    ContentType,
    MailBody,
    MailMessage,
    Metric,
    Packet,
)
from zabbix_relay.services.protocol import build_frame

TRAPPER_SUCCESS = {
    "response": "success",
    "info": "processed: 1; failed: 0; total: 1; seconds spent: 0.000055"
}


# ============================================================================
# 数据 Fixtures
# ============================================================================

@pytest.fixture
def sample_metric() -> Metric:
    """单个指标样本"""
    return Metric(host="srv1", key="cpu.load", value="0.42", clock=1700000000)


@pytest.fixture
def sample_packet(sample_metric: Metric) -> Packet:
    """指标报文样本"""
    return Packet(data=[sample_metric], clock=1700000000)


@pytest.fixture
def sample_mail() -> MailMessage:
    """邮件样本"""
    return MailMessage(
        from_="alertmanager@example.com",
        to=["ops@example.com", "dba@example.com"],
        cc=["lead@example.com"],
        subject="[FIRING] HighCPU on srv1",
        body=MailBody(content_type=ContentType.HTML, content_body="<b>CPU 使用率超过 90%</b>"),
        attach=["graph.png"]
    )


@pytest.fixture
def sample_alert_metric(sample_mail: MailMessage) -> AlertMetric:
    """单条告警样本"""
    return AlertMetric.for_mail(
        time="2023-11-15 06:13:20",
        event=1,
        alert_type=2,
        mail=sample_mail
    )


@pytest.fixture
def sample_alert_packet(sample_alert_metric: AlertMetric) -> AlertPacket:
    """告警报文样本"""
    return AlertPacket(data=[sample_alert_metric], clock=1700000000)


@pytest.fixture
def trapper_reply() -> bytes:
    """trapper 成功应答帧"""
    return build_frame(json.dumps(TRAPPER_SUCCESS).encode("utf-8"))


# ============================================================================
# 假连接 Fixtures
# ============================================================================

class FakeWriter:
    """记录写入内容和关闭次数的 StreamWriter 替身"""

    def __init__(self, fail_write: bool = False):
        self.buffer = bytearray()
        self.close_calls = 0
        self.fail_write = fail_write

    def is_closing(self) -> bool:
        return self.close_calls > 0

    def write(self, data: bytes) -> None:
        if self.fail_write:
            raise ConnectionResetError("Connection reset by peer")
        self.buffer.extend(data)

    async def drain(self) -> None:
        return None

    def close(self) -> None:
        self.close_calls += 1

    async def wait_closed(self) -> None:
        return None


@pytest.fixture
def fake_connection():
    """
    创建假连接工厂

    返回 (connector, writer, calls)，connector 可注入 TrapperClient。
    """
    def factory(response: bytes = b"", eof: bool = True, fail_write: bool = False):
        writer = FakeWriter(fail_write=fail_write)
        calls: List[Tuple[str, int]] = []

        async def connector(host: str, port: int):
            calls.append((host, port))
            reader = asyncio.StreamReader()
            if response:
                reader.feed_data(response)
            if eof:
                reader.feed_eof()
            return reader, writer

        return connector, writer, calls

    return factory


# ============================================================================
# trapper 测试服务器
# ============================================================================

@asynccontextmanager
async def _run_trapper_stub(reply: bytes):
    """启动一个按 trapper 协议收一帧、回一帧后关闭连接的本地服务"""
    received: List[bytes] = []

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        try:
            header = await reader.readexactly(13)
            (length,) = struct.unpack("<Q", header[5:13])
            body = await reader.readexactly(length)
            received.append(header + body)
            writer.write(reply)
            await writer.drain()
        finally:
            writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        yield port, received
    finally:
        server.close()
        await server.wait_closed()


@pytest.fixture
def trapper_stub(trapper_reply: bytes):
    """返回测试服务器的 async context manager 工厂"""
    def factory(reply: bytes = trapper_reply):
        return _run_trapper_stub(reply)
    return factory


# ============================================================================
# 环境配置 Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """清理会影响默认配置的环境变量"""
    for name in (
        "TIMEZONE",
        "ZABBIX_TRAPPER_CONNECT_TIMEOUT",
        "ZABBIX_TRAPPER_READ_TIMEOUT",
        "ZABBIX_ALERT_PORT",
        "ZABBIX_ALERT_SUBPATH",
        "ZABBIX_ALERT_VERIFY_SSL",
        "ZABBIX_ALERT_VERIFICATION_CODE",
    ):
        monkeypatch.delenv(name, raising=False)
