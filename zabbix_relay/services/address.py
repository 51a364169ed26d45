"""
地址解析
"""

import asyncio
import logging
import socket

from zabbix_relay.exceptions import AddressResolutionError
from zabbix_relay.models.sender import ResolvedAddress, Sender

logger = logging.getLogger(__name__)


async def resolve_address(sender: Sender) -> ResolvedAddress:
    """
    将 host:port 解析为 TCP 地址，取第一个结果

    Raises:
        AddressResolutionError: 无法解析
    """
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(
            sender.host,
            sender.port,
            type=socket.SOCK_STREAM,
            proto=socket.IPPROTO_TCP
        )
    except (socket.gaierror, UnicodeError) as e:
        logger.error(f"Failed to resolve {sender}: {e}")
        raise AddressResolutionError(
            f"Connection failed: cannot resolve {sender}: {e}",
            details={"host": sender.host, "port": sender.port}
        ) from e

    if not infos:
        raise AddressResolutionError(
            f"Connection failed: no TCP address for {sender}",
            details={"host": sender.host, "port": sender.port}
        )

    family, _, _, _, sockaddr = infos[0]
    address = ResolvedAddress(ip=sockaddr[0], port=sockaddr[1], family=family)
    logger.debug(f"Resolved {sender} -> {address.netloc}")
    return address
