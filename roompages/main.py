from fastapi import FastAPI
import logging
from pathlib import Path

from roompages.api.routes import router
from roompages.config import settings_from_env
from roompages.infra.redis_client import create_redis
from roompages.pages.host import init_page_host
from roompages.shop.catalog import init_catalog

app = FastAPI(title="roompages", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=logging.DEBUG)
logger = logging.getLogger(__name__)

# project root is one level up from this file: roompages/main.py
_project_root = Path(__file__).resolve().parents[1]


@app.on_event("startup")
async def _startup() -> None:
    init_catalog(project_root=_project_root)
    host = init_page_host(r=create_redis(), settings=settings_from_env())
    logger.info("page host ready (command character %r)", host.settings.command_character)


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "roompages", "version": "0.1.0"}
