"""
告警推送签名

签名规则:
    t = 当前 unix 时间戳(秒，字符串)
    Authorization = "appId:" + sha1(verification_code + t) 的十六进制
校验码格式为 <appId>_<secret>，参与签名的是完整校验码。
"""

import hashlib
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from zabbix_relay.exceptions import SignatureInputError

DEFAULT_TIMEZONE = "Asia/Shanghai"

# 接收端约定的固定标签
DEFAULT_AUTH_LABEL = "appId"


def resolve_timezone(name: Optional[str] = None) -> ZoneInfo:
    """
    解析时区，未配置时使用默认时区

    Raises:
        SignatureInputError: 时区名无效
    """
    if name is None or not name.strip():
        name = DEFAULT_TIMEZONE
    try:
        return ZoneInfo(name.strip())
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise SignatureInputError(
            f"Unknown timezone: {name!r}",
            details={"timezone": name}
        ) from e


def make_timestamp(tz: ZoneInfo, now: Optional[datetime] = None) -> str:
    """
    生成签名时间戳

    取 tz 时区的当前时间转换为 UTC 后的 unix 秒。不带时区的 now 视为 tz 本地时间。
    """
    if now is None:
        current = datetime.now(tz)
    elif now.tzinfo is None:
        current = now.replace(tzinfo=tz)
    else:
        current = now.astimezone(tz)
    return str(int(current.astimezone(timezone.utc).timestamp()))


def split_verification_code(verification_code: str) -> Tuple[str, str]:
    """
    拆分校验码为 (appId, secret)

    Raises:
        SignatureInputError: 格式不是 <appId>_<secret>
    """
    if not verification_code:
        raise SignatureInputError("Verification code is empty")

    app_id, sep, secret = verification_code.partition("_")
    if not sep or not app_id or not secret:
        raise SignatureInputError(
            "Verification code must look like <appId>_<secret>",
            details={"length": len(verification_code)}
        )
    return app_id, secret


def sign(verification_code: str, timestamp: str) -> str:
    """sha1(校验码 + 时间戳)，十六进制小写"""
    return hashlib.sha1((verification_code + timestamp).encode("utf-8")).hexdigest()


def build_auth_headers(
    verification_code: str,
    timezone_name: Optional[str] = None,
    use_app_id_label: bool = False,
    now: Optional[datetime] = None
) -> Dict[str, str]:
    """
    生成签名请求头

    Args:
        verification_code: 校验码 <appId>_<secret>
        timezone_name: 时区名，为空时使用默认时区
        use_app_id_label: Authorization 使用实际 appId 而不是固定标签
        now: 指定当前时间(测试用)

    Returns:
        包含 Authorization 和 t 的请求头
    """
    app_id, _ = split_verification_code(verification_code)
    timestamp = make_timestamp(resolve_timezone(timezone_name), now)
    label = app_id if use_app_id_label else DEFAULT_AUTH_LABEL
    return {
        "Authorization": f"{label}:{sign(verification_code, timestamp)}",
        "t": timestamp,
    }
