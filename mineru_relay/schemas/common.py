from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel


class RelayErrorResp(BaseModel):
    error: bool = True
    message: str
    details: Optional[dict[str, Any]] = None


class LivenessResp(BaseModel):
    message: str
