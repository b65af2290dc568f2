from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from splitledger.core.config import settings
from splitledger.core.logging import configure_logging
from splitledger.db.mongo import connect_to_mongo, close_mongo_connection
from splitledger.services.payment_rail import connect_payment_rail, close_payment_rail
from splitledger.api.v1.api import api_router

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_to_mongo()
    await connect_payment_rail()
    yield
    await close_payment_rail()
    await close_mongo_connection()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    description=settings.DESCRIPTION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
async def root():
    return {"message": "Welcome to Split Ledger API"}

app.include_router(api_router, prefix=settings.API_V1_STR)
