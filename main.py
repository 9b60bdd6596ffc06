import logging
from dotenv import load_dotenv

load_dotenv(dotenv_path=".env")

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.constants import ALLOWED_ORIGINS
from app.dependencies import build_pipeline
from app.routes.trivia import router as trivia_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

app = FastAPI(
    title="Crypto Trivia Backend",
    description="Question sourcing backend for the crypto trivia quiz",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def read_root():
    return {"Crypto Trivia Backend": "Online 👍"}


@app.on_event("startup")
async def build_pipeline_event():
    app.state.pipeline = build_pipeline()


@app.on_event("shutdown")
async def drain_background_tasks_event():
    pipeline = getattr(app.state, "pipeline", None)
    if pipeline is None:
        return
    try:
        await pipeline.drain_background_tasks()
    except Exception as e:
        logging.error(f" Failed to drain background tasks: {e}")

app.include_router(trivia_router)
