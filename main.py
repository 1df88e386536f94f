from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from db_mongo import get_database, close_client
from matching.ai.enrichment import OpenAIEnrichmentProvider
from matching.logic.adapter import MongoProfileStore, MongoRequestHistoryStore
from matching.logic.engine import MatchingEngine
from matching.routes import router as matching_router

load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    database = get_database()
    enrichment = OpenAIEnrichmentProvider()
    if not enrichment.available:
        logger.info("OpenAI API key not found, community ranking uses token overlap only")
        enrichment = None

    app.state.engine = MatchingEngine(
        profile_store=MongoProfileStore(database),
        request_store=MongoRequestHistoryStore(database),
        enrichment_provider=enrichment,
    )
    logging.info("Matching engine started")
    try:
        yield
    finally:
        close_client()
        logging.info("Matching engine stopped")


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(matching_router)
