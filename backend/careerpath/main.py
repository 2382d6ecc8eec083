import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.routing import APIRoute
from datetime import datetime

from .config import settings
from .api.routes import get_advisor, router
from .api.middleware import setup_middleware
from . import __version__

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

DATA_FILES = {
    "class 10 question bank": settings.QUESTION_BANK_10TH_FILE,
    "class 12 question bank": settings.QUESTION_BANK_12TH_FILE,
    "course catalog": settings.COURSES_FILE,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    missing = [f"{name} ({path})" for name, path in DATA_FILES.items() if not os.path.exists(path)]
    if missing:
        logger.error(f"Startup failed, missing data files: {', '.join(missing)}")
        raise FileNotFoundError(f"Missing data files: {', '.join(missing)}")

    # Load banks and catalog now so a broken file fails startup, not the first quiz
    advisor = app.dependency_overrides.get(get_advisor, get_advisor)()
    logger.info(
        f"CareerPath Advisor {__version__} ready: {len(advisor.courses)} courses, "
        f"quiz limits {settings.MIN_QUESTIONS}-{settings.MAX_QUESTIONS} questions"
    )

    yield

    logger.info(f"Shutting down with {len(advisor.sessions)} open sessions")


app = FastAPI(
    title="CareerPath Advisor",
    description="Adaptive RIASEC quiz and course recommendations for class 10 and 12 students",
    version=__version__,
    lifespan=lifespan
)

setup_middleware(app)

app.include_router(router, prefix=API_PREFIX, tags=["CareerPath"])


def _endpoint_rows() -> str:
    rows = []
    for route in app.routes:
        if isinstance(route, APIRoute) and route.path.startswith(API_PREFIX):
            methods = "/".join(sorted(route.methods))
            summary = (route.endpoint.__doc__ or "").strip().splitlines()
            rows.append(
                f"<tr><td><code>{methods}</code></td><td><code>{route.path}</code></td>"
                f"<td>{summary[0] if summary else ''}</td></tr>"
            )
    return "\n".join(rows)


@app.get("/", response_class=HTMLResponse)
async def root():
    return HTMLResponse(content=f"""
    <!DOCTYPE html>
    <html>
    <head>
        <title>CareerPath Advisor</title>
        <style>
            body {{ font-family: system-ui, sans-serif; max-width: 880px; margin: 2em auto; color: #1f2937; }}
            h1 {{ color: #0f766e; margin-bottom: 0; }}
            table {{ border-collapse: collapse; width: 100%; margin-top: 1em; }}
            td {{ border-bottom: 1px solid #e5e7eb; padding: 6px 8px; vertical-align: top; }}
        </style>
    </head>
    <body>
        <h1>CareerPath Advisor</h1>
        <p>Version {__version__}. Take the adaptive quiz to find the stream and course that fit you.
        See <a href="/docs">the interactive docs</a> or <a href="{API_PREFIX}/health">service health</a>.</p>
        <table>
        {_endpoint_rows()}
        </table>
    </body>
    </html>
    """)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    request_id = getattr(request.state, "request_id", None)
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "request_id": request_id,
            "timestamp": datetime.now().isoformat()
        }
    )
