"""
FastAPI Development Server

Run the contractor agent router API in development mode.

Usage:
    python scripts/run-dev.py
    # OR (after `pip install -e .`)
    source .venv/bin/activate
    python scripts/run-dev.py
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
    """Start the FastAPI development server"""
    base_url = f"http://localhost:{settings.api_port}"
    logger.info("="*80)
    logger.info("Contractor Agent Router - API Server")
    logger.info("="*80)
    logger.info("")
    logger.info("Starting FastAPI development server...")
    logger.info(f"Server will be available at: {base_url}")
    logger.info(f"API Documentation: {base_url}/docs")
    logger.info(f"Health Check: {base_url}/health")
    logger.info(f"Message Routing: POST {base_url}/api/chat/route")
    logger.info(f"Executions: {base_url}/api/executions")
    logger.info("")
    logger.info("Press CTRL+C to stop the server")
    logger.info("="*80)

    uvicorn.run(
        "src.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
        log_level=settings.log_level.lower(),
        access_log=True,
        reload_dirs=[str(project_root / "src")]
    )


if __name__ == "__main__":
    main()
