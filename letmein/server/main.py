from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import settings
from .database import init_db
from .routers import sync
from . import models  # noqa: F401  (registers the tables)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(sync.router, prefix=settings.API_STR, tags=["Sync"])


@app.get("/")
def root():
    return {"message": "letmein sync server is running"}
