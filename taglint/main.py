"""
TagLint FastAPI Application — Java rule-violation analysis service.

  POST /analyze               → tags, compound tags, violations and risk per file
  POST /profile               → tag profile of one file
  POST /expressions/validate  → syntax and dependencies of a tag expression
  GET  /health                → status and loaded definition counts
"""

from __future__ import annotations

import logging

from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taglint.api.routes.analyze import router as analyze_router
from taglint.api.routes.expressions import router as expressions_router
from taglint.api.routes.health import VERSION, router as health_router
from taglint.api.routes.profile import router as profile_router
from taglint.config import settings
from taglint.errors import TagLintError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("taglint")

app = FastAPI(
    title="TagLint",
    description="Tag-based Java static analysis: semantic tags, compound tags and rule matching",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(analyze_router)
app.include_router(profile_router)
app.include_router(expressions_router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    body = await request.body()
    logger.error(f"Validation Error. Raw body: {body.decode('utf-8')[:500]} | Errors: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors(), "body": body.decode("utf-8")[:100]},
    )


@app.exception_handler(TagLintError)
async def taglint_exception_handler(request: Request, exc: TagLintError):
    logger.error(f"Definitions unavailable: {exc}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
