from __future__ import annotations

import json
import logging
from typing import Annotated, Any, Optional, TypeVar

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from pydantic import BaseModel, ValidationError

from ..dependencies import MineruClientDep, ResultPollerDep, UploadFlowDep
from ..errors import BadRequest
from ..schemas.mineru import BatchUploadUrlReq, PollResultsReq, ProcessPdfResp
from ..services.upload_flow import UploadRequest

router = APIRouter()
# 第一版 relay 的路径不带 /api 前缀，老前端仍在用
legacy_router = APIRouter()
logger = logging.getLogger("mineru_relay")

FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

M = TypeVar("M", bound=BaseModel)


async def read_fields(request: Request) -> dict[str, Any]:
    """Body fields from either a JSON object or a form-encoded body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_TYPES):
        form = await request.form()
        return {k: v for k, v in form.items() if isinstance(v, str)}

    raw_body = await request.body()
    if not raw_body.strip():
        return {}
    try:
        payload = json.loads(raw_body.decode("utf-8"))
    except ValueError:
        raise BadRequest("Invalid request body")
    if not isinstance(payload, dict):
        raise BadRequest("Invalid request body")
    return payload


def body_of(model: type[M]):
    async def _parse(request: Request) -> M:
        fields = await read_fields(request)
        try:
            return model.model_validate(fields)
        except ValidationError as e:
            bad = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
            raise BadRequest("Invalid request body", details={"fields": bad})

    return _parse


BatchUploadUrlBody = Annotated[BatchUploadUrlReq, Depends(body_of(BatchUploadUrlReq))]
PollResultsBody = Annotated[PollResultsReq, Depends(body_of(PollResultsReq))]


def resolve_token(token: Optional[str], request: Request) -> Optional[str]:
    # body/form 里没有 mineruToken 时，允许用 Authorization: Bearer 透传
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    scheme, _, value = auth.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


@router.post("/getBatchUploadUrl")
async def get_batch_upload_url(request: Request, client: MineruClientDep, req: BatchUploadUrlBody):
    token = resolve_token(req.mineruToken, request)
    if not token:
        raise BadRequest("Missing mineruToken")

    envelope = await client.request_upload_urls(token, req.fileName)
    return envelope.verbatim()


@router.post("/pollResults")
async def poll_results(request: Request, poller: ResultPollerDep, req: PollResultsBody):
    return await poller.poll(resolve_token(req.mineruToken, request), req.batchId)


async def poll_results_by_path(
    batch_id: str,
    request: Request,
    poller: ResultPollerDep,
    mineruToken: Optional[str] = None,
):
    return await poller.poll(resolve_token(mineruToken, request), batch_id)


router.add_api_route("/pollResults/{batch_id}", poll_results_by_path, methods=["GET"])
legacy_router.add_api_route("/pollResults/{batch_id}", poll_results_by_path, methods=["GET"])
legacy_router.add_api_route("/getBatchUploadUrl", get_batch_upload_url, methods=["POST"])


@router.post("/processPDF", response_model=ProcessPdfResp)
async def process_pdf(
    request: Request,
    flow: UploadFlowDep,
    mineruToken: Annotated[Optional[str], Form()] = None,
    pdfFile: Annotated[Optional[UploadFile], File()] = None,
):
    upload = UploadRequest(token=resolve_token(mineruToken, request), file_bytes=None)
    if pdfFile is not None:
        upload.file_bytes = await pdfFile.read()
        upload.file_name = pdfFile.filename
        upload.mime_type = pdfFile.content_type or upload.mime_type

    batch_id = await flow.submit(upload)
    return ProcessPdfResp(batchId=batch_id)
