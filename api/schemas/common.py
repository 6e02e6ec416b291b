"""Common shared schemas used across multiple domains."""

from typing import List, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response raised by the reporting core."""
    error: str
    detail: str
    fields: List[str] = Field(default_factory=list)
    request_id: Optional[str] = None


class BunkerQuantitiesModel(BaseModel):
    """Per-substance quantities in metric tonnes."""
    lsifo: float = 0.0
    lsmgo: float = 0.0
    cyl_oil: float = 0.0
    me_oil: float = 0.0
    ae_oil: float = 0.0
    vol_oil: float = 0.0
