from fastapi import APIRouter
from typing import Dict, Any
from ..config import PipelineConfig
from ..providers.erc721 import Erc721Reader
from ..providers.opensea import OpenSeaProvider

router = APIRouter()


@router.get("/healthz")
async def health_check() -> Dict[str, Any]:
    """Health check endpoint that verifies provider status"""

    config = PipelineConfig.from_settings()
    rpc = Erc721Reader(config.rpc_url, timeout_s=5)
    opensea = OpenSeaProvider(config.opensea_api_key, config.opensea_base_url)

    provider_status = {
        "rpc": await rpc.health_check(),
        "opensea": await opensea.health_check(),
    }

    # Prices are optional; without RPC nothing works
    healthy = provider_status["rpc"]["status"] == "healthy"

    return {
        "status": "healthy" if healthy else "degraded",
        "providers": provider_status,
    }
