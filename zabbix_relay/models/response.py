"""
响应数据模型
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TrapperResponse(BaseModel):
    """
    Zabbix trapper 应答

    示例: {"response": "success", "info": "processed: 1; failed: 0; total: 1; seconds spent: 0.000055"}
    """

    model_config = ConfigDict(frozen=True)

    response: str = Field(..., description="应答状态")
    info: str = Field(default="", description="处理信息")
    processed: Optional[int] = Field(None, description="处理成功条数")
    failed: Optional[int] = Field(None, description="处理失败条数")
    total: Optional[int] = Field(None, description="总条数")
    seconds_spent: Optional[float] = Field(None, description="服务端耗时(秒)")

    @property
    def success(self) -> bool:
        """服务端是否接受并且没有失败项"""
        return self.response == "success" and not self.failed


class PushResponse(BaseModel):
    """HTTPS 推送结果"""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="请求 URL")
    status_code: int = Field(..., description="HTTP 状态码")
    content: bytes = Field(default=b"", description="完整响应体")
    duration_ms: int = Field(default=0, description="耗时(毫秒)")

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")
