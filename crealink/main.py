from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
from loguru import logger

from crealink.core.config import get_settings
from crealink.core.logger import setup_logging
from crealink.db.firebase_ops import get_firestore_ops_instance
from crealink.services.directory import backfill_display_names
from crealink.routers import auth as auth_router
from crealink.routers import users as users_router
from crealink.routers import profiles as profiles_router
from crealink.routers import portfolio as portfolio_router
from crealink.routers import jobs as jobs_router
from crealink.routers import projects as projects_router
from crealink.routers import contracts as contracts_router
from crealink.routers import messaging as messaging_router
from crealink.routers import notifications as notifications_router

setup_logging()
settings = get_settings()

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router.router)
app.include_router(users_router.router)
app.include_router(profiles_router.router)
app.include_router(portfolio_router.router)
app.include_router(jobs_router.router)
app.include_router(projects_router.router)
app.include_router(contracts_router.router)
app.include_router(messaging_router.router)
app.include_router(notifications_router.router)

@app.get("/")
async def root():
    return {"message": "Welcome to CREALINK, where creators meet experts"}

def main():
    """Run the FastAPI application."""
    uvicorn.run(
        "crealink.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )

def backfill_names():
    """Write `display_name` on every users document that only has a legacy name."""
    updated = backfill_display_names(get_firestore_ops_instance())
    logger.info(f"Backfilled display_name on {updated} users documents")

if __name__ == "__main__":
    main()
