from __future__ import annotations

from typing import Any, Dict, Optional

from ..errors import BadRequest
from .mineru_client import MineruClient


class ResultPoller:
    """Forwards a batch id to MinerU and returns the envelope as received."""

    def __init__(self, client: MineruClient):
        self.client = client

    async def poll(self, token: Optional[str], batch_id: Optional[str]) -> Dict[str, Any]:
        if not token or not batch_id:
            raise BadRequest("Missing mineruToken or batchId")
        envelope = await self.client.fetch_results(token, batch_id)
        return envelope.verbatim()
