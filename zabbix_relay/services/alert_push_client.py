"""
告警 HTTPS 推送客户端

将告警以 JSON 形式 POST 到 Zabbix 主机的指定子路径，支持签名认证。
"""

import logging
import ssl
import time
from typing import Dict, Optional, Union

import httpx

from zabbix_relay.config import AlertPushConfig, settings
from zabbix_relay.exceptions import (
    HTTPStatusError,
    HTTPTransportError,
    ReadError,
    RequestBuildError,
    SignatureInputError,
)
from zabbix_relay.models.alert import AlertMetric, AlertPacket
from zabbix_relay.models.response import PushResponse
from zabbix_relay.models.sender import ResolvedAddress, Sender
from zabbix_relay.services.address import resolve_address
from zabbix_relay.services.signing import build_auth_headers

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


class AlertPushClient:
    """告警 HTTPS 推送客户端"""

    def __init__(self, config: Optional[AlertPushConfig] = None):
        """
        初始化客户端

        Args:
            config: 推送配置
        """
        self.config = config or settings.alert_push

    def _verify(self) -> Union[bool, ssl.SSLContext]:
        """证书校验设置，默认校验"""
        if not self.config.verify_ssl:
            logger.warning("TLS certificate verification is disabled for alert push")
            return False
        if self.config.ca_file:
            try:
                return ssl.create_default_context(cafile=self.config.ca_file)
            except (OSError, ssl.SSLError) as e:
                raise RequestBuildError(
                    f"Failed to load CA file {self.config.ca_file}: {e}",
                    details={"ca_file": self.config.ca_file}
                ) from e
        return True

    def build_url(self, address: ResolvedAddress, subpath: Optional[str] = None) -> str:
        """
        生成推送 URL: https://<ip>:<port><subpath>

        未配置推送端口时使用 Sender 的端口。
        """
        path = self.config.subpath if subpath is None else subpath
        if not path.startswith("/"):
            path = "/" + path
        port = self.config.port or address.port
        return f"https://{address._replace(port=port).netloc}{path}"

    async def _post(self, url: str, content: bytes, headers: Dict[str, str]) -> PushResponse:
        """
        发送 POST 请求并读取完整响应体

        Raises:
            RequestBuildError: 请求构建失败
            HTTPTransportError: 连接、超时等传输错误
            ReadError: 读取响应体失败
            HTTPStatusError: 状态码非 2xx
        """
        start_time = time.time()

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.timeout),
            verify=self._verify(),
            # 直连目标主机，不读取环境变量中的代理
            trust_env=False
        ) as client:
            try:
                request = client.build_request("POST", url, content=content, headers=headers)
            except httpx.InvalidURL as e:
                raise RequestBuildError(f"Invalid push URL {url}: {e}", details={"url": url}) from e

            response = None
            try:
                try:
                    response = await client.send(request, stream=True)
                except httpx.RequestError as e:
                    logger.error(f"Push request failed: {url}: {e!r}")
                    raise HTTPTransportError(
                        f"Push request failed: {url}: {e}",
                        details={"url": url}
                    ) from e

                try:
                    body = await response.aread()
                except httpx.HTTPError as e:
                    logger.error(f"Failed to read push response body: {url}: {e!r}")
                    raise ReadError(
                        f"Failed to read response body from {url}: {e}",
                        details={"url": url, "status_code": response.status_code}
                    ) from e
            finally:
                if response is not None:
                    await response.aclose()

        duration_ms = int((time.time() - start_time) * 1000)

        if not response.is_success:
            text = body.decode("utf-8", errors="replace")
            error_msg = f"Push failed with status {response.status_code}: {text}"
            logger.error(error_msg)
            raise HTTPStatusError(
                error_msg,
                status_code=response.status_code,
                body=body,
                details={"url": url, "duration_ms": duration_ms}
            )

        logger.info(f"Push succeeded: {url} (status: {response.status_code}, duration: {duration_ms}ms)")
        logger.debug(f"Push response: {body!r}")
        return PushResponse(
            url=url,
            status_code=response.status_code,
            content=body,
            duration_ms=duration_ms
        )

    # ========== 推送 ==========

    async def alert_send(
        self,
        sender: Sender,
        packet: AlertPacket,
        subpath: Optional[str] = None
    ) -> PushResponse:
        """
        推送告警批次(不签名)

        Args:
            sender: 目标端点
            packet: 告警报文
            subpath: 推送子路径，为空时使用配置

        Returns:
            推送结果
        """
        content = packet.to_json_bytes()
        address = await resolve_address(sender)
        url = self.build_url(address, subpath)

        logger.info(f"Pushing {len(packet.data)} alerts to {url}")
        return await self._post(url, content, {"Content-Type": JSON_CONTENT_TYPE})

    async def alert_metric_send(
        self,
        sender: Sender,
        metric: AlertMetric,
        subpath: Optional[str] = None,
        verification_code: Optional[str] = None
    ) -> PushResponse:
        """
        推送单条告警(签名)

        Args:
            sender: 目标端点
            metric: 告警
            subpath: 推送子路径，为空时使用配置
            verification_code: 校验码，为空时使用配置

        Returns:
            推送结果
        """
        code = self.config.verification_code if verification_code is None else verification_code
        if not code:
            raise SignatureInputError("No verification code configured for signed alert push")

        content = metric.to_json_bytes()
        headers = {"Content-Type": JSON_CONTENT_TYPE}
        headers.update(
            build_auth_headers(
                code,
                timezone_name=self.config.timezone,
                use_app_id_label=self.config.use_app_id_label
            )
        )

        address = await resolve_address(sender)
        url = self.build_url(address, subpath)

        logger.info(f"Pushing signed alert (evt={metric.event}) to {url}")
        return await self._post(url, content, headers)
