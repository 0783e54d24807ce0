from __future__ import annotations

from typing import Optional

from fastapi import APIRouter
from fastapi.responses import Response

from ..dependencies import BinaryRelayDep
from ..schemas.mineru import PandocReq
from ..services.binary_relay import RelayedBody

router = APIRouter()


def to_response(body: RelayedBody) -> Response:
    # content-type 原样透传，不让 Starlette 再补 charset
    headers = {"Content-Type": body.content_type}
    if body.content_disposition:
        headers["Content-Disposition"] = body.content_disposition
    return Response(content=body.content, headers=headers)


@router.get("/proxy-zip")
async def proxy_zip(relay: BinaryRelayDep, url: Optional[str] = None):
    return to_response(await relay.relay_zip(url))


@router.post("/proxy-pandoc")
async def proxy_pandoc(relay: BinaryRelayDep, req: Optional[PandocReq] = None):
    req = req or PandocReq()
    return to_response(await relay.relay_markdown_conversion(req.markdown))
