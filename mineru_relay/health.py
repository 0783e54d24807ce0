from __future__ import annotations

from fastapi import APIRouter

from .config import settings
from .schemas.common import LivenessResp

router = APIRouter()


@router.get("/", response_model=LivenessResp)
def root():
    return LivenessResp(message="PDF Convert API Proxy is running")


@router.get("/health")
def health():
    return {"status": "ok", "service": settings.SERVICE_NAME}
