import logging

from fastapi import APIRouter, HTTPException, Query

from ..errors import InvalidAddressError, PortfolioError
from ..services.pipeline import build_portfolio, normalize_address
from ..services.view import PortfolioView, SortDirection, SortKey
from ..types import PortfolioResponse

router = APIRouter()
_logger = logging.getLogger(__name__)


@router.get("/portfolio")
async def get_portfolio_endpoint(
    contract: str = Query(..., description="ERC-721 collection contract address"),
    owner: str = Query(..., description="Wallet address"),
    q: str = Query("", description="Case-insensitive search over name and description"),
    sort: SortKey = Query(SortKey.TOKEN_ID, description="Sort key"),
    direction: SortDirection = Query(SortDirection.ASC, description="Sort direction"),
) -> PortfolioResponse:
    """Aggregate a wallet's tokens in one collection with metadata and prices"""

    try:
        normalize_address(contract, "contract address")
        normalize_address(owner, "wallet address")
    except InvalidAddressError as exc:
        raise HTTPException(status_code=400, detail=exc.message)

    try:
        portfolio = await build_portfolio(contract, owner)
    except PortfolioError as exc:
        _logger.error("Portfolio run failed for %s: %s", owner, exc.message)
        return PortfolioResponse(success=False, error=exc.message)

    view = PortfolioView.of(portfolio).filter(q).sort_by(sort, direction)
    return PortfolioResponse(
        success=True,
        portfolio=portfolio.model_copy(update={"entries": list(view.entries)}),
        summary=view.summary(),
    )
