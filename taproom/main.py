from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from taproom.api.v1.router import router as v1_router
from taproom.core.config import settings
from taproom.core.logging import configure_logging
from taproom.db import init_db
from taproom.middleware.request_id import RequestIdMiddleware

configure_logging()


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.auto_create_schema:
        init_db()
    yield


app = FastAPI(title="Taproom API", lifespan=lifespan)

# Starlette runs the LAST added middleware FIRST (outermost), so the
# request id is bound before CORS handles preflights.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIdMiddleware)

Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/")
def root():
    return {"name": "Taproom API", "status": "ok"}


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(v1_router, prefix="/v1")
