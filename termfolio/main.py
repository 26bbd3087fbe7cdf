from fastapi import FastAPI
import logging

from termfolio.api.routes import router
from termfolio.content.startup import init_content_for_app

app = FastAPI(title="termfolio", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=logging.DEBUG)
logger = logging.getLogger(__name__)


@app.on_event("startup")
async def _startup() -> None:
    content = init_content_for_app()
    logger.info("Loaded site content for %s (%d projects)", content.info.site_name, len(content.projects))


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "termfolio", "version": "0.1.0"}
