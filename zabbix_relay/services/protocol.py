"""
Zabbix trapper 协议编解码

帧格式:
    bytes 0-3   "ZBXD"
    byte  4     协议标志 0x01 (0x02 位表示 zlib 压缩)
    bytes 5-12  数据长度，小端 64 位，高 32 位为 0
    bytes 13-   UTF-8 JSON 数据
"""

import json
import logging
import re
import struct
import zlib
from typing import Union

from pydantic import ValidationError

from zabbix_relay.exceptions import ProtocolError
from zabbix_relay.models.alert import AlertPacket
from zabbix_relay.models.metric import Packet
from zabbix_relay.models.response import TrapperResponse

logger = logging.getLogger(__name__)

ZBX_MAGIC = b"ZBXD"
ZBX_FLAG_PROTOCOL = 0x01
ZBX_FLAG_COMPRESSED = 0x02
ZBX_HEADER = ZBX_MAGIC + bytes([ZBX_FLAG_PROTOCOL])
ZBX_LENGTH_FORMAT = "<II"
ZBX_HEADER_SIZE = len(ZBX_HEADER) + struct.calcsize(ZBX_LENGTH_FORMAT)

TRAPPER_INFO_REGEX = re.compile(
    r"processed: (\d+); failed: (\d+); total: (\d+); seconds spent: (\d+\.\d+)"
)


def build_frame(payload: bytes) -> bytes:
    """为已序列化的数据加上协议头和长度"""
    return ZBX_HEADER + struct.pack(ZBX_LENGTH_FORMAT, len(payload), 0) + payload


def encode_frame(packet: Union[Packet, AlertPacket]) -> bytes:
    """
    将报文编码为完整的 trapper 帧

    只序列化一次，长度字段与发送内容来自同一份字节。

    Raises:
        SerializationError: 序列化失败
    """
    payload = packet.to_json_bytes()
    logger.debug(f"Encoded {packet.request!r} frame: {len(payload)} bytes payload")
    return build_frame(payload)


def decode_frame(data: bytes) -> bytes:
    """
    解析 trapper 帧，返回 JSON 数据部分

    Raises:
        ProtocolError: 帧头、长度或压缩数据不合法
    """
    if len(data) < ZBX_HEADER_SIZE:
        raise ProtocolError(
            f"Frame too short: {len(data)} bytes",
            details={"size": len(data)}
        )
    if data[:4] != ZBX_MAGIC:
        raise ProtocolError(f"Invalid frame magic: {data[:4]!r}")

    flags = data[4]
    if not flags & ZBX_FLAG_PROTOCOL:
        raise ProtocolError(f"Invalid protocol flag: {flags:#04x}")

    low, high = struct.unpack(ZBX_LENGTH_FORMAT, data[5:ZBX_HEADER_SIZE])
    declared = low + (high << 32)
    body = data[ZBX_HEADER_SIZE:]
    if len(body) != declared:
        raise ProtocolError(
            f"Frame length mismatch: declared {declared}, got {len(body)}",
            details={"declared": declared, "actual": len(body)}
        )

    if flags & ZBX_FLAG_COMPRESSED:
        try:
            body = zlib.decompress(body)
        except zlib.error as e:
            raise ProtocolError(f"Failed to decompress frame: {e}") from e

    return body


def parse_trapper_response(raw: bytes) -> TrapperResponse:
    """
    解析 trapper 应答

    支持带协议头的帧，也支持裸 JSON。

    Raises:
        ProtocolError: 应答不是合法的 trapper 应答
    """
    body = decode_frame(raw) if raw.startswith(ZBX_MAGIC) else raw

    try:
        obj = json.loads(body)
    except ValueError as e:
        raise ProtocolError(f"Trapper response is not valid JSON: {e}") from e

    if not isinstance(obj, dict) or "response" not in obj:
        raise ProtocolError(f"Unexpected trapper response: {obj!r}")

    info = str(obj.get("info", ""))
    fields = {"response": obj["response"], "info": info}

    matched = TRAPPER_INFO_REGEX.search(info)
    if matched:
        fields.update(
            processed=int(matched.group(1)),
            failed=int(matched.group(2)),
            total=int(matched.group(3)),
            seconds_spent=float(matched.group(4)),
        )
    elif info:
        logger.warning(f"Unrecognized trapper info format: {info}")

    try:
        return TrapperResponse(**fields)
    except ValidationError as e:
        raise ProtocolError(f"Invalid trapper response: {e}") from e
