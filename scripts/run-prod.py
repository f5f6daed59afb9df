"""
FastAPI Production Server

Run the contractor agent router API in production mode.

Usage:
    python scripts/run-prod.py
"""

import sys
import os
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
os.chdir(project_root)

import uvicorn
from loguru import logger

from src.config.settings import settings


def main():
    """Start the FastAPI production server"""
    logger.info("="*80)
    logger.info("Contractor Agent Router - API Server (Production)")
    logger.info("="*80)
    logger.info(f"Listening on {settings.api_host}:{settings.api_port}")
    logger.info("Press CTRL+C to stop the server")
    logger.info("="*80)

    # Execution managers live in process memory, so run a single worker
    uvicorn.run(
        "src.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        workers=1,
        log_level=settings.log_level.lower(),
        access_log=True
    )


if __name__ == "__main__":
    main()
