"""
序列化基类
"""

import json

from pydantic import BaseModel, ConfigDict
from pydantic_core import PydanticSerializationError

from zabbix_relay.exceptions import SerializationError


class WireModel(BaseModel):
    """按 Zabbix 报文字段名序列化的不可变模型"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_wire_dict(self) -> dict:
        """转换为报文格式的字典(使用别名字段)"""
        return self.model_dump(mode="json", by_alias=True)

    def to_json_bytes(self) -> bytes:
        """
        序列化为 UTF-8 JSON 字节

        帧长度和发送内容都必须取自这一次序列化的结果。
        """
        try:
            # 保留中文原文，不做 \\u 转义
            text = json.dumps(self.to_wire_dict(), ensure_ascii=False, separators=(",", ":"))
            return text.encode("utf-8")
        except (TypeError, ValueError, PydanticSerializationError) as e:
            raise SerializationError(
                f"Failed to serialize {type(self).__name__}: {e}",
                details={"model": type(self).__name__}
            ) from e
