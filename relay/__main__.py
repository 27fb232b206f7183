import logging
import uvicorn
from relay.app.main import app
from relay.app.core.config import settings

logger = logging.getLogger("relay")

if __name__ == "__main__":
    if not settings.hf_token:
        logger.warning("HF_TOKEN is not set; /api/chat will answer 500 until it is configured")
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
