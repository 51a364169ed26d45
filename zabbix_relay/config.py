"""
配置管理模块

支持从环境变量和 .env 文件加载配置。
"""

from typing import Optional
from functools import lru_cache
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TrapperConfig(BaseSettings):
    """Zabbix trapper (TCP) 连接配置"""

    model_config = SettingsConfigDict(
        env_prefix="ZABBIX_TRAPPER_",
        env_file=".env",
        extra="ignore"
    )

    host: str = Field(default="localhost", description="Zabbix server/proxy 地址")
    port: int = Field(default=10051, description="Zabbix trapper 端口")
    connect_timeout: float = Field(default=5.0, description="TCP 连接超时(秒)")
    read_timeout: float = Field(default=10.0, description="读取响应超时(秒)")
    write_timeout: float = Field(default=10.0, description="写入数据超时(秒)")
    max_response_size: int = Field(default=1024 * 1024, description="响应最大字节数")


class AlertPushConfig(BaseSettings):
    """告警 HTTPS 推送配置"""

    model_config = SettingsConfigDict(
        env_prefix="ZABBIX_ALERT_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True
    )

    # 未设置时使用 Sender 的端口
    port: Optional[int] = Field(default=None, description="HTTPS 端口")
    subpath: str = Field(default="/", description="推送子路径")
    verify_ssl: bool = Field(default=True, description="是否校验服务端证书")
    ca_file: Optional[str] = Field(default=None, description="自定义 CA 证书文件")
    timeout: int = Field(default=30, description="请求超时(秒)")
    verification_code: Optional[str] = Field(
        default=None,
        description="签名校验码，格式: <appId>_<secret>"
    )
    use_app_id_label: bool = Field(
        default=False,
        description="Authorization 头使用 appId 实际值，关闭时使用固定标签 appId"
    )
    # 与容器镜像保持一致，直接读取 TIMEZONE 环境变量
    timezone: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("TIMEZONE", "timezone"),
        description="签名时间戳使用的时区"
    )


class LoggingConfig(BaseSettings):
    """日志配置"""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore"
    )

    level: str = Field(default="INFO", description="日志级别")
    format: str = Field(default="json", description="日志格式: json/text")


class Settings(BaseSettings):
    """应用总配置"""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

    app_name: str = Field(default="Zabbix Relay", description="应用名称")

    # 子配置
    trapper: TrapperConfig = Field(default_factory=TrapperConfig)
    alert_push: AlertPushConfig = Field(default_factory=AlertPushConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


@lru_cache()
def get_settings() -> Settings:
    """获取应用配置(带缓存)"""
    return Settings()


# 配置单例
settings = get_settings()
