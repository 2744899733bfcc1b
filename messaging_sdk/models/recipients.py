from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class RecipientReport(BaseModel):
    """Deliverability of one address as reported by the prepare endpoint."""

    address: str = Field(..., description="Address as sent in the request")
    deliverable: Optional[bool] = Field(
        default=None, description="None when the service gave no verdict"
    )
    capabilities: Dict[str, Any] = Field(
        default_factory=dict, description="Provider-specific capability flags"
    )
