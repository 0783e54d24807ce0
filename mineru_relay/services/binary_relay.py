from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from ..config import Settings, settings as default_settings
from ..errors import BadRequest, RemoteRejected, RemoteUnavailable
from .mineru_client import upstream_message

logger = logging.getLogger("mineru_relay.binary_relay")

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass
class RelayedBody:
    content_type: str
    content: bytes
    content_disposition: Optional[str] = None


class BinaryRelay:
    """
    浏览器无法跨域直接拿二进制结果（MinerU 的 zip、pandoc 转换出的文档），
    这里代为请求并原样返回字节和 content-type。
    """

    def __init__(self, *, cfg: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.cfg = cfg or default_settings
        self._transport = transport

    async def _fetch(self, method: str, url: str, *, json: Any = None) -> RelayedBody:
        timeout = httpx.Timeout(self.cfg.UPLOAD_TIMEOUT_SEC)
        try:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True, transport=self._transport) as client:
                resp = await client.request(method, url, json=json)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol):
            raise BadRequest(f"Invalid url: {url}")
        except httpx.TimeoutException as e:
            logger.error({"event": "relay.timeout", "method": method, "url": url})
            raise RemoteUnavailable(f"Upstream request timed out ({e.__class__.__name__})")
        except httpx.RequestError as e:
            logger.error({"event": "relay.request_error", "method": method, "url": url, "error": str(e)})
            raise RemoteUnavailable(str(e) or e.__class__.__name__)

        if not resp.is_success:
            logger.warning({"event": "relay.upstream_error", "url": url, "status": resp.status_code})
            raise RemoteRejected(
                upstream_message(resp),
                status_code=resp.status_code,
                details={"upstream_status": resp.status_code},
            )

        body = RelayedBody(
            content_type=resp.headers.get("content-type") or DEFAULT_CONTENT_TYPE,
            content=resp.content,
            content_disposition=resp.headers.get("content-disposition"),
        )
        logger.info({"event": "relay.ok", "url": url, "content_type": body.content_type, "size_bytes": len(body.content)})
        return body

    async def relay_zip(self, url: Optional[str]) -> RelayedBody:
        if not url:
            raise BadRequest("Missing url")
        return await self._fetch("GET", url)

    async def relay_markdown_conversion(self, markdown: Optional[str]) -> RelayedBody:
        if not markdown:
            raise BadRequest("Missing markdown")
        target = self.cfg.PANDOC_SERVICE_URL.rstrip("/") + "/convert"
        return await self._fetch("POST", target, json={"markdown": markdown})
