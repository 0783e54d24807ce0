from __future__ import annotations

import enum
import logging
import time
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from ..config import Settings, settings as default_settings
from ..errors import BadRequest, MalformedResponse, RemoteRejected, RemoteUnavailable, UploadFailed
from ..schemas.mineru import BatchAllocation, BatchUrlsData, RemoteEnvelope

logger = logging.getLogger("mineru_relay.mineru_client")


class UploadMode(str, enum.Enum):
    # 不带 Content-Type，预签名 URL 对多余的头会返回 403
    BARE = "bare"
    # 显式带上文件自身的 mime type
    DECLARED_TYPE = "declared_type"


def make_data_id() -> str:
    return f"web_upload_{int(time.time() * 1000)}"


def decode_envelope(resp: httpx.Response) -> RemoteEnvelope:
    try:
        payload = resp.json()
    except ValueError:
        raise MalformedResponse("Remote returned a non-JSON response", details={"upstream_status": resp.status_code})
    if not isinstance(payload, dict):
        raise MalformedResponse("Remote returned an unexpected payload", details={"upstream_status": resp.status_code})
    try:
        return RemoteEnvelope.from_payload(payload)
    except ValidationError as e:
        fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise MalformedResponse(
            f"Remote envelope has invalid fields: {', '.join(fields)}",
            details={"upstream_status": resp.status_code, "fields": fields},
        )


def upstream_message(resp: httpx.Response) -> str:
    """Best-effort human readable reason for a non-2xx upstream response."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("msg", "message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return f"{resp.status_code} {resp.reason_phrase}".strip()


class MineruClient:
    """
    MinerU v4 批量接口的 client：
      POST /file-urls/batch               -> 申请 batch_id 和预签名上传 URL
      PUT  <presigned url>                -> 直接上传文件字节
      GET  /extract-results/batch/{id}    -> 查询解析结果
    每次调用独立创建 AsyncClient，不在请求之间共享状态。
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        cfg: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.cfg = cfg or default_settings
        self.base_url = (base_url or self.cfg.MINERU_BASE_URL).rstrip("/")
        self._transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=self._transport)

    @staticmethod
    def _headers(token: str) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}",
        }

    def batch_payload(self, file_name: Optional[str]) -> Dict[str, Any]:
        return {
            "enable_formula": self.cfg.ENABLE_FORMULA,
            "enable_table": self.cfg.ENABLE_TABLE,
            "layout_model": self.cfg.LAYOUT_MODEL,
            "language": self.cfg.DOC_LANGUAGE,
            "files": [
                {
                    "name": file_name or self.cfg.DEFAULT_FILE_NAME,
                    "is_ocr": self.cfg.IS_OCR,
                    "data_id": make_data_id(),
                }
            ],
        }

    async def _call(self, method: str, url: str, *, token: str, json: Any = None) -> RemoteEnvelope:
        try:
            async with self._client(self.cfg.REQUEST_TIMEOUT_SEC) as client:
                resp = await client.request(method, url, json=json, headers=self._headers(token))
        except httpx.TimeoutException as e:
            logger.error({"event": "mineru.timeout", "method": method, "url": url, "error": str(e)})
            raise RemoteUnavailable(f"MinerU request timed out ({e.__class__.__name__})")
        except httpx.RequestError as e:
            logger.error({"event": "mineru.request_error", "method": method, "url": url, "error": str(e)})
            raise RemoteUnavailable(str(e) or e.__class__.__name__)

        if not resp.is_success:
            logger.warning({"event": "mineru.http_error", "url": url, "status": resp.status_code})
            raise RemoteRejected(
                upstream_message(resp),
                status_code=resp.status_code,
                details={"upstream_status": resp.status_code},
            )

        envelope = decode_envelope(resp)
        if not envelope.ok:
            logger.warning({"event": "mineru.rejected", "url": url, "code": envelope.code, "msg": envelope.msg})
            raise RemoteRejected(
                envelope.msg or f"MinerU returned code {envelope.code}",
                status_code=400,
                details={"code": envelope.code},
            )
        return envelope

    async def request_upload_urls(self, token: str, file_name: Optional[str] = None) -> RemoteEnvelope:
        return await self._call(
            "POST",
            f"{self.base_url}/file-urls/batch",
            token=token,
            json=self.batch_payload(file_name),
        )

    async def allocate_batch(self, token: str, file_name: Optional[str] = None) -> BatchAllocation:
        envelope = await self.request_upload_urls(token, file_name)
        try:
            data = BatchUrlsData.model_validate(envelope.data)
        except ValidationError:
            raise MalformedResponse("MinerU response is missing batch_id")
        if not data.file_urls:
            raise MalformedResponse("MinerU response did not include an upload URL", details={"stage": "allocate"})

        logger.info({"event": "mineru.batch_allocated", "batch_id": data.batch_id})
        return BatchAllocation(batch_id=data.batch_id, upload_url=data.file_urls[0])

    async def put_bytes(
        self,
        upload_url: str,
        content: bytes,
        *,
        mime_type: Optional[str] = None,
        mode: UploadMode = UploadMode.BARE,
    ) -> None:
        headers: Dict[str, str] = {}
        if mode is UploadMode.DECLARED_TYPE and mime_type:
            headers["Content-Type"] = mime_type

        try:
            async with self._client(self.cfg.UPLOAD_TIMEOUT_SEC) as client:
                resp = await client.put(upload_url, content=content, headers=headers)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            logger.error({"event": "mineru.put_failed", "error": str(e), "size_bytes": len(content)})
            raise UploadFailed(
                f"Upload to storage failed: {str(e) or e.__class__.__name__}",
                details={"stage": "upload", "allocated": True},
            )

        if not resp.is_success:
            reason = f"{resp.status_code} {resp.reason_phrase}".strip()
            logger.error({"event": "mineru.put_rejected", "status": resp.status_code, "body": resp.text[:500]})
            raise UploadFailed(
                f"Upload to storage failed: {reason}",
                details={
                    "stage": "upload",
                    "allocated": True,
                    "upstream_status": resp.status_code,
                    "reason": resp.reason_phrase,
                },
            )

    async def fetch_results(self, token: str, batch_id: str) -> RemoteEnvelope:
        # batch_id 只能占一个 path segment
        if batch_id.strip(".") == "":
            raise BadRequest(f"Invalid batchId: {batch_id}")
        return await self._call(
            "GET",
            f"{self.base_url}/extract-results/batch/{quote(batch_id, safe='')}",
            token=token,
        )
