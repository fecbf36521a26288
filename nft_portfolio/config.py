import os

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]

ALCHEMY_MAINNET_URL = "https://eth-mainnet.g.alchemy.com/v2/{api_key}"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Pick up the OpenSea key from the names the old web viewer used."""

        super().model_post_init(__context)

        if not self.opensea_api_key:
            fallback = os.getenv("VITE_OPENSEA_API_KEY") or os.getenv("OPENSEA_KEY")
            if fallback:
                object.__setattr__(self, "opensea_api_key", fallback)

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="auto", description="Log rendering: json, console or auto")

    # Blockchain RPC
    rpc_url: str = Field(default="", description="JSON-RPC endpoint used for contract reads")
    alchemy_api_key: str = Field(default="", description="Alchemy API key, used when rpc_url is empty")

    # Content-addressed storage gateways
    ipfs_gateway: str = Field(default="https://ipfs.io/ipfs", description="Gateway base path for ipfs:// references")
    arweave_gateway: str = Field(default="https://arweave.net", description="Gateway base path for ar:// references")

    # Marketplace
    opensea_api_key: str = Field(default="", description="OpenSea API key")
    opensea_base_url: str = Field(default="https://api.opensea.io", description="OpenSea API base URL")

    # Rate Limiting
    max_concurrent_requests: int = Field(default=8, description="Max in-flight requests per enrichment stage")
    request_timeout_seconds: float = Field(default=15.0, description="Deadline for each individual network call")
    max_owned_tokens: int = Field(default=10_000, description="Largest balanceOf result that is enumerated")

    def resolved_rpc_url(self) -> str:
        if self.rpc_url:
            return self.rpc_url
        if self.alchemy_api_key:
            return ALCHEMY_MAINNET_URL.format(api_key=self.alchemy_api_key)
        return ""


# Global settings instance
settings = Settings()


@dataclass(frozen=True)
class PipelineConfig:
    """Explicit configuration handed to the pipeline components."""

    rpc_url: str
    gateways: Dict[str, str] = field(default_factory=dict)
    opensea_api_key: Optional[str] = None
    opensea_base_url: str = "https://api.opensea.io"
    max_concurrent_requests: int = 8
    request_timeout_seconds: float = 15.0
    max_owned_tokens: int = 10_000

    @classmethod
    def from_settings(cls, source: Optional[Settings] = None) -> "PipelineConfig":
        source = source or settings
        return cls(
            rpc_url=source.resolved_rpc_url(),
            gateways={
                "ipfs://": source.ipfs_gateway,
                "ar://": source.arweave_gateway,
            },
            opensea_api_key=source.opensea_api_key or None,
            opensea_base_url=source.opensea_base_url,
            max_concurrent_requests=max(source.max_concurrent_requests, 1),
            request_timeout_seconds=source.request_timeout_seconds,
            max_owned_tokens=max(source.max_owned_tokens, 0),
        )
