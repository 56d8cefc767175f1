import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import get_cors_origins, is_debug
from .routers.auth import router as auth_router
from .routers.keywords import router as keywords_router
from .routers.trends import router as trends_router
from .routers.wordstat import router as wordstat_router


# Load environment variables from .env file
load_dotenv()

logging.basicConfig(
    level=logging.DEBUG if is_debug() else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):

    # Startup
    print("Starting Keyword Trend Forecaster")
    print(f"   OpenAI Key:    {' Configured' if os.getenv('OPENAI_API_KEY') else ' Not set (external strategy unavailable)'}")
    print(f"   WordStat Key:  {' Configured' if os.getenv('WORDSTAT_KEY') else ' Not set (WordStat lookups unavailable)'}")
    print(f"   Directus URL:  {os.getenv('DIRECTUS_API_URL', 'default')}")
    print("   Ready to forecast keywords!")

    yield

    print("Shutting down Keyword Trend Forecaster")


app = FastAPI(
    title="Keyword Trend Forecaster",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(keywords_router)
app.include_router(trends_router)
app.include_router(wordstat_router)


@app.get(
    "/",
    summary="API Root",
    description="Welcome endpoint with API information",
    tags=["General"]
)
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Keyword Trend Forecaster",
        "version": __version__,
        "description": "Search-volume trend forecasts for keywords",
        "docs": "/docs",
        "endpoints": {
            "predict": "POST /trends/predict - Forecast from supplied history",
            "forecast": "GET /trends/forecast - Fetch WordStat history and forecast",
            "wordstat": "GET /wordstat - Raw WordStat data",
            "keywords": "GET/POST /keywords - Manage stored keywords",
            "health": "GET /health - Service health check"
        }
    }


@app.get(
    "/health",
    summary="Global Health Check",
    description="Check if the API server is running",
    tags=["General"]
)
async def health():
    """Global health check endpoint."""
    return {
        "status": "healthy",
        "service": "keyword-trend-forecaster",
        "version": __version__
    }


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "detail": str(exc) if is_debug() else "An unexpected error occurred"
        }
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "keyword_trends.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=is_debug(),
    )
