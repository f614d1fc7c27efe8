import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Core imports
from packages.aip_core.config import AIPConfig
from packages.aip_core.logging import get_logger, setup_logging
from packages.aip_core.errors import AIPBaseError

# API Routers
from AIP.api.errors import status_for
from AIP.api.health import router as health_router
from AIP.api.guardrails import router as guardrails_router
from AIP.api.sentiment import router as sentiment_router
from AIP.api.code import router as code_router
from AIP.api.questions import router as questions_router
from AIP.api.scoring import router as scoring_router
from AIP.api.interviews import router as interviews_router

# Configuration Load
config = AIPConfig.load()
logger = get_logger("aip.main")


async def aip_error_handler(request: Request, exc: AIPBaseError) -> JSONResponse:
    status_code = status_for(exc)
    level = logging.ERROR if status_code >= 500 else logging.INFO
    logger.log(level, f"{request.method} {request.url.path} -> {status_code} {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"code": exc.code, "message": exc.message, "details": exc.details},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    logger.info(f"Starting {config.PROJECT_NAME} v{config.VERSION}...")

    yield

    # Shutdown
    logger.info("Server shutting down...")


def create_app() -> FastAPI:
    app = FastAPI(
        title=config.PROJECT_NAME,
        version=config.VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url=None
    )

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AIPBaseError, aip_error_handler)

    # Routers
    app.include_router(health_router, prefix="", tags=["Status"])
    app.include_router(guardrails_router, prefix="/api/v1/guardrails", tags=["Guardrails"])
    app.include_router(sentiment_router, prefix="/api/v1/sentiment", tags=["Sentiment"])
    app.include_router(code_router, prefix="/api/v1/code", tags=["Code"])
    app.include_router(questions_router, prefix="/api/v1/questions", tags=["Questions"])
    app.include_router(scoring_router, prefix="/api/v1/scoring", tags=["Scoring"])
    app.include_router(interviews_router, prefix="/api/v1/interviews", tags=["Interviews"])

    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("AIP.main:app", host="0.0.0.0", port=8000, reload=True)
