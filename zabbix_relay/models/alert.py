"""
邮件告警数据模型

通过 HTTPS 推送的邮件类告警，字段名与接收端约定一致。
"""

from enum import IntEnum
from typing import Literal, Optional, Sequence, Tuple

from pydantic import Field, field_validator

from zabbix_relay.models.base import WireModel
from zabbix_relay.models.metric import current_clock

OCP_ALERTS_REQUEST = "ocp alerts"


class ContentType(IntEnum):
    """邮件正文类型"""
    PLAIN = 1
    HTML = 2


class MailBody(WireModel):
    """邮件正文"""

    content_type: ContentType = Field(default=ContentType.PLAIN, alias="contentType")
    content_body: str = Field(default="", alias="contentBody")


class MailMessage(WireModel):
    """邮件内容"""

    from_: str = Field(..., alias="from", description="发件人")
    to: Tuple[str, ...] = Field(default_factory=tuple, description="收件人")
    cc: Tuple[str, ...] = Field(default_factory=tuple, description="抄送")
    bcc: Tuple[str, ...] = Field(default_factory=tuple, description="密送")
    subject: str = Field(default="", description="主题")
    body: MailBody = Field(default_factory=MailBody, description="正文")
    attach: Tuple[str, ...] = Field(default_factory=tuple, description="附件列表(有序)")

    @field_validator("to", "cc", "bcc")
    @classmethod
    def _dedupe_recipients(cls, recipients: Tuple[str, ...]) -> Tuple[str, ...]:
        # 收件人按集合处理，保留首次出现的顺序
        return tuple(dict.fromkeys(recipients))


class MailMessageType(WireModel):
    """消息类型包装，目前只有邮件"""

    mail: MailMessage = Field(..., description="邮件消息")


class AlertMetric(WireModel):
    """单条告警"""

    time: str = Field(..., alias="tm", description="告警时间")
    event: int = Field(..., alias="evt", description="事件标识")
    alert_type: int = Field(..., alias="type", description="告警类型")
    message_type: MailMessageType = Field(..., alias="msg", description="告警消息")

    @classmethod
    def for_mail(cls, time: str, event: int, alert_type: int, mail: MailMessage) -> "AlertMetric":
        """由邮件内容直接构造告警"""
        return cls(time=time, event=event, alert_type=alert_type,
                   message_type=MailMessageType(mail=mail))

    @property
    def mail(self) -> MailMessage:
        return self.message_type.mail


class AlertPacket(WireModel):
    """告警批量推送报文"""

    request: Literal["ocp alerts"] = Field(default=OCP_ALERTS_REQUEST, description="请求类型")
    data: Tuple[AlertMetric, ...] = Field(default_factory=tuple, description="告警列表")
    clock: int = Field(default_factory=current_clock, description="报文时间(unix 秒)")

    @classmethod
    def from_metrics(cls, metrics: Sequence[AlertMetric], clock: Optional[int] = None) -> "AlertPacket":
        """由告警列表构造报文，未指定 clock 时使用当前时间"""
        if clock is None:
            return cls(data=tuple(metrics))
        return cls(data=tuple(metrics), clock=clock)
