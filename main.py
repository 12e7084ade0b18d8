import argparse
import logging

from zemon.app import create_app
from zemon.config import Settings


parser = argparse.ArgumentParser(description="Zemon API entry point.")
parser.add_argument("--host", default="0.0.0.0", help="Interface to bind.")
parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")
parser.add_argument(
    "--reload",
    action="store_true",
    help="Restart the server when source files change (development only).",
)
args, _ = parser.parse_known_args()

settings = Settings.from_env()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = create_app(settings)

if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting Zemon API on {args.host}:{args.port}")
    uvicorn.run("main:app", host=args.host, port=args.port, reload=args.reload)
