import argparse
import logging
import uvicorn
from fastapi import FastAPI, Depends
from contextlib import asynccontextmanager

import sys
from pathlib import Path

# Add project root to path for package imports
base_dir = Path(__file__).parent
sys.path.insert(0, str(base_dir))

from db.database import init_db, get_db, get_db_path
from db.schema import SCHEMA_VERSION
from config import load_config, CONFIG_DIR
from routes import capsules, progress, transfer  # Import routers

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    level = load_config()["logging"]["level"]
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# First-run init
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: init config, logging and storage
    configure_logging()
    if init_db():
        logger.info("Seeded example capsule into %s", get_db_path())
    yield


app = FastAPI(
    title="Pocket Classroom",
    description="Offline learning capsules: local storage, study progress and import/export",
    lifespan=lifespan,
)

# Include routers
app.include_router(capsules.router, prefix="/capsules", tags=["capsules"])
app.include_router(progress.router, prefix="/progress", tags=["progress"])
app.include_router(transfer.router, prefix="/transfer", tags=["transfer"])


@app.get("/")
async def home(storage = Depends(get_db)):
    return {
        "name": "Pocket Classroom",
        "schemaVersion": SCHEMA_VERSION,
        "capsuleCount": len(storage.list_all()),
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Pocket Classroom")
    parser.add_argument("--init", action="store_true", help="Initialize storage and config")
    parser.add_argument("--dev", action="store_true", help="Run in dev mode with reload")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on")
    args = parser.parse_args()
    if args.init:
        configure_logging()
        seeded = init_db()
        print(f"Storage ready at {get_db_path()} (config in {CONFIG_DIR})")
        if seeded:
            print("Added the example capsule.")
        sys.exit(0)
    # Run server
    uvicorn.run("main:app", host="127.0.0.1", port=args.port, reload=args.dev, log_level="info")
