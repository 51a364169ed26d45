"""
Zabbix Relay - 将告警数据转发到 Zabbix

支持两种传输方式:
- Zabbix trapper 协议 (TCP)
- HTTPS JSON 推送 (邮件类告警，可签名)
"""

__version__ = "1.0.0"
