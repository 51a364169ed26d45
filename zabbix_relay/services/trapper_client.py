"""
Zabbix trapper 客户端

通过 TCP 向 Zabbix server/proxy 发送一帧 trapper 数据并读取应答。
每次发送都新建连接，发送完成后关闭，不做连接复用。
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Sequence, Tuple, Union

from zabbix_relay.config import TrapperConfig, settings
from zabbix_relay.exceptions import ConnectError, ConnectTimeoutError, ReadError, WriteError
from zabbix_relay.models.alert import AlertPacket
from zabbix_relay.models.metric import Metric, Packet
from zabbix_relay.models.response import TrapperResponse
from zabbix_relay.models.sender import ResolvedAddress, Sender
from zabbix_relay.services.address import resolve_address
from zabbix_relay.services.protocol import encode_frame, parse_trapper_response

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 4096

Connection = Tuple[asyncio.StreamReader, asyncio.StreamWriter]
Connector = Callable[[str, int], Awaitable[Connection]]


def _close_late_connection(attempt: "asyncio.Future[Connection]") -> None:
    """超时后才建立成功的连接，直接关闭"""
    if attempt.cancelled() or attempt.exception() is not None:
        return
    _, writer = attempt.result()
    logger.warning("Closing trapper connection that completed after connect timeout")
    writer.close()


class TrapperClient:
    """Zabbix trapper 协议客户端"""

    def __init__(self, config: Optional[TrapperConfig] = None, connector: Optional[Connector] = None):
        """
        初始化客户端

        Args:
            config: trapper 配置
            connector: 建立 TCP 连接的协程函数，默认 asyncio.open_connection
        """
        self.config = config or settings.trapper
        self._connector = connector or asyncio.open_connection

    async def resolve(self, sender: Sender) -> ResolvedAddress:
        """解析目标地址"""
        return await resolve_address(sender)

    async def connect_with_timeout(self, address: ResolvedAddress) -> Connection:
        """
        在超时时间内建立 TCP 连接

        连接尝试在独立任务中进行，与计时器竞争。超时后取消该任务，
        如果连接仍然建立成功，由回调负责关闭。

        Raises:
            ConnectTimeoutError: 超时未连接
            ConnectError: 连接被拒绝、网络不可达等
        """
        timeout = self.config.connect_timeout
        attempt = asyncio.ensure_future(self._connector(address.ip, address.port))
        try:
            done, _ = await asyncio.wait({attempt}, timeout=timeout)
        finally:
            # 超时或调用方被取消
            if not attempt.done():
                attempt.add_done_callback(_close_late_connection)
                attempt.cancel()

        if attempt not in done:
            logger.error(f"Connection timeout after {timeout}s: {address.netloc}")
            raise ConnectTimeoutError(
                f"Connection Timeout: {address.netloc} did not accept within {timeout}s",
                details={"address": address.netloc, "timeout": timeout}
            )

        try:
            return attempt.result()
        except OSError as e:
            logger.error(f"Connection failed: {address.netloc}: {e}")
            raise ConnectError(
                f"Connection failed: {address.netloc}: {e}",
                details={"address": address.netloc}
            ) from e

    async def write_frame(self, writer: asyncio.StreamWriter, frame: bytes) -> None:
        """
        写入完整的数据帧

        Raises:
            WriteError: 连接已关闭、写入失败或超时
        """
        if writer.is_closing():
            raise WriteError("Error while sending the data: connection is closing")

        try:
            writer.write(frame)
            await asyncio.wait_for(writer.drain(), timeout=self.config.write_timeout)
        except asyncio.TimeoutError as e:
            raise WriteError(
                f"Error while sending the data: timed out after {self.config.write_timeout}s"
            ) from e
        except OSError as e:
            logger.error(f"Error while sending the data: {e}")
            raise WriteError(f"Error while sending the data: {e}") from e

    async def read_response(self, reader: asyncio.StreamReader) -> bytes:
        """
        读取应答直到对端关闭连接

        Raises:
            ReadError: 读取失败、超时或超过最大长度
        """
        timeout = self.config.read_timeout
        try:
            return await asyncio.wait_for(self._read_all(reader), timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Read timeout after {timeout}s")
            raise ReadError(
                f"Error while receiving the data: no EOF within {timeout}s",
                details={"timeout": timeout}
            ) from e
        except OSError as e:
            logger.error(f"Error while receiving the data: {e}")
            raise ReadError(f"Error while receiving the data: {e}") from e

    async def _read_all(self, reader: asyncio.StreamReader) -> bytes:
        limit = self.config.max_response_size
        chunks = []
        size = 0
        while True:
            chunk = await reader.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            if size > limit:
                raise ReadError(
                    f"Error while receiving the data: response exceeds {limit} bytes",
                    details={"limit": limit}
                )
            chunks.append(chunk)
        return b"".join(chunks)

    @staticmethod
    async def _close(writer: asyncio.StreamWriter) -> None:
        """关闭连接，关闭阶段的错误只记录，不覆盖原始错误"""
        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            logger.warning(f"Error while closing trapper connection: {e}")

    # ========== 发送 ==========

    async def send(self, sender: Sender, packet: Union[Packet, AlertPacket]) -> bytes:
        """
        发送报文到 Zabbix 并返回原始应答

        流程: 解析地址 -> 连接 -> 写入帧 -> 读取应答 -> 关闭连接

        Args:
            sender: 目标端点
            packet: 指标或告警报文

        Returns:
            应答原始字节(包含协议头)
        """
        address = await self.resolve(sender)
        frame = encode_frame(packet)

        start_time = time.time()
        reader, writer = await self.connect_with_timeout(address)
        try:
            await self.write_frame(writer, frame)
            response = await self.read_response(reader)
        finally:
            await self._close(writer)

        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Sent {len(packet.data)} items to {address.netloc} "
            f"({len(frame)} bytes, duration: {duration_ms}ms)"
        )
        logger.debug(f"Trapper response: {response!r}")
        return response

    async def send_metrics(
        self,
        sender: Sender,
        metrics: Sequence[Metric],
        clock: Optional[int] = None
    ) -> TrapperResponse:
        """
        发送指标并解析应答

        Returns:
            解析后的 trapper 应答
        """
        packet = Packet.from_metrics(metrics, clock=clock)
        raw = await self.send(sender, packet)
        return parse_trapper_response(raw)
