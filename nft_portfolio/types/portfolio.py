from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class CollectionInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Collection name reported by the contract")
    symbol: str = Field(description="Collection symbol reported by the contract")
    contract_address: str = Field(description="ERC-721 contract address")


class Attribute(BaseModel):
    trait_type: str = Field(default="", description="Trait name")
    value: str = Field(default="", description="Trait value")

    @field_validator("trait_type", "value", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)


class Price(BaseModel):
    amount: Decimal = Field(description="Lowest listing price in human units")
    currency: str = Field(description="Payment token symbol")


class PriceStatus(str, Enum):
    PENDING = "pending"
    LISTED = "listed"
    NOT_LISTED = "not_listed"
    UNAVAILABLE = "unavailable"


class PortfolioEntry(BaseModel):
    token_id: str = Field(description="Collection-scoped token identifier")
    name: str = Field(description="Token name, '#<token_id>' when the metadata has none")
    image: str = Field(default="", description="Fetchable image location")
    description: str = Field(default="", description="Token description")
    attributes: Optional[List[Attribute]] = Field(default=None, description="Traits, absent when the metadata has none")
    collection: CollectionInfo = Field(description="Collection shared by every entry of a run")
    price: Optional[Price] = Field(default=None, description="Lowest active listing")
    price_status: PriceStatus = Field(default=PriceStatus.PENDING, description="Outcome of the price lookup")


class FailureStage(str, Enum):
    OWNERSHIP = "ownership"
    METADATA = "metadata"
    PRICE = "price"


class EnrichmentFailure(BaseModel):
    token_id: Optional[str] = Field(default=None, description="Token identifier, None when it never resolved")
    index: Optional[int] = Field(default=None, description="Owner enumeration index for ownership failures")
    stage: FailureStage = Field(description="Pipeline stage that failed")
    cause: str = Field(description="Short description of the failure")


class Portfolio(BaseModel):
    contract_address: str = Field(description="Collection contract address")
    owner_address: str = Field(description="Wallet address")
    collection: CollectionInfo = Field(description="Collection info")
    entries: List[PortfolioEntry] = Field(default_factory=list, description="Enriched tokens")
    failures: List[EnrichmentFailure] = Field(default_factory=list, description="Per-item diagnostics")
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="When the run started")
    latency_ms: Optional[int] = Field(default=None, description="Run latency in milliseconds")

    @computed_field
    @property
    def failed_count(self) -> int:
        return sum(1 for failure in self.failures if failure.stage != FailureStage.PRICE)

    @computed_field
    @property
    def is_empty(self) -> bool:
        """True only when the wallet owns nothing, as opposed to everything failing."""
        return not self.entries and not self.failures
