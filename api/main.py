from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.routes import router, shutdown_workbench
from utils.logging_setup import configure_logging

configure_logging()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    shutdown_workbench()


app = FastAPI(
    title="ZenTable Connection API",
    version="0.1.0",
    description="Connect to SQLite, MongoDB and PostgreSQL, run queries and browse schemas through one contract",
    lifespan=lifespan,
)
app.include_router(router)
