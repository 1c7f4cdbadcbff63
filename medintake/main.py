# medintake/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from medintake.config import get_settings
from medintake.logging_config import setup_logging
from medintake.services import init_db
from medintake.api.routes import get_intake_service, router as api_router


app = FastAPI(title="MedIntake API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # for dev; tighten in prod
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)


@app.on_event("startup")
def on_startup() -> None:
    setup_logging()
    if get_settings().persist_transcripts:
        init_db()


@app.on_event("shutdown")
async def on_shutdown() -> None:
    # Let transcript saves still running in worker threads finish.
    if get_intake_service.cache_info().currsize:
        await get_intake_service().flush_saves()


@app.get("/")
def root():
    return {"message": "MedIntake API is running"}


app.include_router(api_router, prefix="/api")
