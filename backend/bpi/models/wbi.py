"""Response envelope and WBI signing models."""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel


class BpiResponse(BaseModel):
    """JSON envelope returned by every API endpoint."""

    code: int
    message: str = ""
    ttl: int = 1
    data: Optional[Any] = None


class WbiImg(BaseModel):
    img_url: str
    sub_url: str


class NavData(BaseModel):
    wbi_img: WbiImg


class WbiData(BaseModel):
    """Signature fields for callers that assemble their own query."""

    wts: int
    w_rid: str
