from typing import Annotated

from fastapi import Depends

from .config import settings
from .services.binary_relay import BinaryRelay
from .services.mineru_client import MineruClient
from .services.result_poller import ResultPoller
from .services.upload_flow import UploadFlow


async def get_mineru_client() -> MineruClient:
    return MineruClient(settings.MINERU_BASE_URL, cfg=settings)


async def get_upload_flow(client: MineruClient = Depends(get_mineru_client)) -> UploadFlow:
    return UploadFlow(client, cfg=settings)


async def get_result_poller(client: MineruClient = Depends(get_mineru_client)) -> ResultPoller:
    return ResultPoller(client)


async def get_binary_relay() -> BinaryRelay:
    return BinaryRelay(cfg=settings)


MineruClientDep = Annotated[MineruClient, Depends(get_mineru_client)]
UploadFlowDep = Annotated[UploadFlow, Depends(get_upload_flow)]
ResultPollerDep = Annotated[ResultPoller, Depends(get_result_poller)]
BinaryRelayDep = Annotated[BinaryRelay, Depends(get_binary_relay)]
