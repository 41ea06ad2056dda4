from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from scriptdesk.errors import ScriptDeskError
from scriptdesk.routes_analytics import router as analytics_router
from scriptdesk.routes_folders import router as folders_router
from scriptdesk.routes_generation import router as generation_router
from scriptdesk.routes_pipeline import router as pipeline_router
from scriptdesk.routes_profiles import router as profiles_router
from scriptdesk.routes_scripts import router as scripts_router
from scriptdesk.routes_styles import router as styles_router
from scriptdesk.settings import get_settings

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("scriptdesk")

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ScriptDeskError)
async def scriptdesk_error_handler(request: Request, exc: ScriptDeskError):
    if exc.status_code >= 500:
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url)
    return PlainTextResponse("Internal Server Error", status_code=500)


@app.get("/ping")
async def ping():
    return {"status": "ok"}


app.include_router(scripts_router)
app.include_router(pipeline_router)
app.include_router(folders_router)
app.include_router(profiles_router)
app.include_router(styles_router)
app.include_router(generation_router)
app.include_router(analytics_router)
