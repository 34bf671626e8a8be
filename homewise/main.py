"""Main FastAPI application."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from homewise import __version__
from homewise.config import settings
from homewise.advisor import routes as advisor_routes
from homewise.analysis import routes as analysis_routes
from homewise.middleware import setup_rate_limiting

logging.basicConfig(
    level=logging.INFO if settings.APP_ENV == "development" else logging.WARNING,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create FastAPI app
app = FastAPI(
    title="Homewise API",
    description="Home affordability analysis and mortgage advisor chat",
    version=__version__,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_rate_limiting(app)

# Include routers
app.include_router(analysis_routes.router, prefix=f"{settings.API_V1_PREFIX}/analysis", tags=["Analysis"])
app.include_router(advisor_routes.router, prefix=f"{settings.API_V1_PREFIX}/advisor", tags=["Advisor"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Homewise API",
        "version": __version__,
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "homewise.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
