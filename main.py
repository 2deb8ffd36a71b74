"""
main.py
========
Central entry point for the LinguaRelay server.

Run with:
    uvicorn main:app --reload
"""

import logging

from dotenv import load_dotenv

load_dotenv()  # Load .env before any module reads env vars

# Configure logging for the entire application
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# Suppress OpenAI SDK internal HTTP/transport logs; the relay logs every
# provider call itself.
for _openai_logger_name in (
    "openai",
    "openai._base_client",
    "httpx",
    "httpcore",
    "httpcore.http11",
    "httpcore.connection",
):
    logging.getLogger(_openai_logger_name).setLevel(logging.CRITICAL)

from src.api.routes import create_app  # noqa: E402
from src.config import SERVER_META, get_settings  # noqa: E402

settings = get_settings()
app = create_app(settings)

logging.getLogger("linguarelay").info("Server meta: %s", SERVER_META)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=True)
