from typing import Any, Dict, Optional
from pydantic import BaseModel, Field
from .portfolio import Portfolio


class PortfolioResponse(BaseModel):
    success: bool = Field(description="Whether request was successful")
    portfolio: Optional[Portfolio] = Field(default=None, description="Portfolio data, entries ordered by the requested view")
    error: Optional[str] = Field(default=None, description="Error message if failed")
    summary: Dict[str, Any] = Field(default_factory=dict, description="Counts for the status line")
