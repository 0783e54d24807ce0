from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

# MinerU 用 code 0 表示成功，部分接口也会返回 200
SUCCESS_CODES = frozenset({0, 200})


class RemoteEnvelope(BaseModel):
    """MinerU's uniform ``{code, msg, data}`` wrapper; unknown keys are kept."""

    model_config = ConfigDict(extra="allow")

    code: int
    msg: Optional[str] = ""
    data: Any = None

    _raw: dict = PrivateAttr(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict) -> "RemoteEnvelope":
        envelope = cls.model_validate(payload)
        envelope._raw = payload
        return envelope

    @property
    def ok(self) -> bool:
        return self.code in SUCCESS_CODES

    def verbatim(self) -> dict:
        """The payload exactly as MinerU sent it."""
        return self._raw or self.model_dump()


class BatchUrlsData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    batch_id: str
    file_urls: list[str] = Field(default_factory=list)


class BatchAllocation(BaseModel):
    batch_id: str
    upload_url: str


# ---- relay request/response bodies (camelCase is what the browser client sends) ----

class BatchUploadUrlReq(BaseModel):
    mineruToken: Optional[str] = None
    fileName: Optional[str] = None


class PollResultsReq(BaseModel):
    mineruToken: Optional[str] = None
    batchId: Optional[str] = None


class ProcessPdfResp(BaseModel):
    success: bool = True
    batchId: str


class PandocReq(BaseModel):
    markdown: Optional[str] = None
