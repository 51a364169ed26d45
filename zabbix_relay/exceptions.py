"""
异常定义

所有传输层错误都从 ZabbixRelayError 派生，调用方可以按类型区分处理。
"""

from typing import Any, Dict, Optional


class ZabbixRelayError(Exception):
    """
    基础异常

    Attributes:
        message: 错误信息
        details: 附加上下文(地址、状态码等)
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典，便于结构化日志输出"""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "cause": str(self.__cause__) if self.__cause__ else None,
        }


class AddressResolutionError(ZabbixRelayError):
    """主机名无法解析为 TCP 地址"""


class ConnectError(ZabbixRelayError):
    """TCP 连接失败(拒绝、网络不可达等)"""


class ConnectTimeoutError(ConnectError):
    """TCP 连接在超时时间内未完成"""


class WriteError(ZabbixRelayError):
    """发送数据帧失败"""


class ReadError(ZabbixRelayError):
    """读取响应失败"""


class SerializationError(ZabbixRelayError):
    """数据包序列化失败"""


class ProtocolError(ZabbixRelayError):
    """响应帧格式不符合 Zabbix 协议"""


class HTTPTransportError(ZabbixRelayError):
    """HTTPS 请求在传输阶段失败"""


class RequestBuildError(HTTPTransportError):
    """HTTPS 请求构建失败"""


class HTTPStatusError(ZabbixRelayError):
    """HTTPS 响应状态码非 2xx"""

    def __init__(self, message: str, status_code: int, body: bytes = b"",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.status_code = status_code
        self.body = body

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["status_code"] = self.status_code
        return result


class SignatureInputError(ZabbixRelayError):
    """签名输入不合法(校验码格式、时区等)"""
