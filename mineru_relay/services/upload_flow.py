from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..config import Settings, settings as default_settings
from ..errors import BadRequest
from .mineru_client import MineruClient, UploadMode

logger = logging.getLogger("mineru_relay.upload_flow")


@dataclass
class UploadRequest:
    token: Optional[str]
    file_bytes: Optional[bytes]
    file_name: Optional[str] = None
    mime_type: str = "application/pdf"


class UploadFlow:
    """
    一次提交 = 申请上传 URL -> PUT 文件字节 -> 返回 batch_id。
    任一步失败立即中断，调用方只拿到 batch_id，用于后续轮询。
    """

    def __init__(self, client: MineruClient, *, cfg: Optional[Settings] = None, mode: Optional[UploadMode] = None):
        self.client = client
        self.cfg = cfg or default_settings
        if mode is None:
            mode = UploadMode.DECLARED_TYPE if self.cfg.UPLOAD_SEND_CONTENT_TYPE else UploadMode.BARE
        self.mode = mode

    async def submit(self, req: UploadRequest) -> str:
        if not req.token:
            raise BadRequest("Missing mineruToken")
        if not req.file_bytes:
            raise BadRequest("Missing pdfFile")

        file_name = req.file_name or self.cfg.DEFAULT_FILE_NAME
        logger.info({"event": "submit.received", "file_name": file_name, "size_bytes": len(req.file_bytes)})

        # 1) 申请 batch 和上传 URL
        allocation = await self.client.allocate_batch(req.token, file_name)

        # 2) 上传文件字节（失败时 batch 已创建，但文件没有到达）
        await self.client.put_bytes(
            allocation.upload_url,
            req.file_bytes,
            mime_type=req.mime_type,
            mode=self.mode,
        )
        logger.info({"event": "submit.uploaded", "batch_id": allocation.batch_id, "mode": self.mode.value})

        return allocation.batch_id
