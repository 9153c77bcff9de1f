from contextlib import asynccontextmanager

from fastapi import FastAPI

from core import db
from images import router as images_router
from ingestion import router as ingestion_router
from jobs import router as jobs_router

@asynccontextmanager
async def lifespan(_: FastAPI):
    # Initialize the DB pool once per process.
    await db.init_pool()
    try:
        yield
    finally:
        await db.close_pool()


app = FastAPI(title="cat catalog", lifespan=lifespan)

app.include_router(ingestion_router.router, tags=["ingestion"])
app.include_router(images_router.router, tags=["images"])
app.include_router(jobs_router.router, tags=["jobs"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/")
def root() -> dict:
    return {"message": "cat catalog api"}
