import logging

import uvicorn

from hairscan.config import settings
from hairscan.main import create_app

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Directory is loaded here, before uvicorn accepts connections
app = create_app(settings)

if __name__ == "__main__":
    logger.info(f"Server starting on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)
