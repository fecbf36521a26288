from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from . import __version__
from .api import health, portfolio
from .config import settings
from .logging_config import setup_logging
from .middleware import RequestLoggingMiddleware

setup_logging()

app = FastAPI(
    title="NFT Portfolio API",
    description="Wallet NFT holdings enriched with metadata and marketplace prices",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, tags=["Health"])
app.include_router(portfolio.router, tags=["Portfolio"])


@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "name": "NFT Portfolio API",
        "version": __version__,
        "docs": "/docs",
        "health": "/healthz"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "nft_portfolio.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower()
    )
