"""Pydantic models for the heatmap endpoint and the upstream spans API."""

from typing import List, Optional

from pydantic import BaseModel, Field

from spanheat.models.entities import Span


class RenderParams(BaseModel):
    """Full parameter set of a render request.

    Frozen, so instances are hashable and compare by value; the response
    cache is keyed on them.
    """
    id: str
    timezone: str = "Europe/London"
    cell_size: int = Field(10, ge=1)
    padding: int = Field(3, ge=0)
    rounding: int = Field(20, ge=0, le=255)
    theme: str = "dark"
    ranges: str = "70,30,10"
    standalone: bool = False
    labels: bool = False
    year: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def media_type(self) -> str:
        return "text/html" if self.standalone else "image/svg+xml"


class SpansPayload(BaseModel):
    """Body of the upstream per-user spans endpoint."""
    spans: List[Span]
