"""
Auto-Complete Monitor Runner
Run this as a separate process: python run_auto_complete_monitor.py
(or use the ARQ worker: arq completion_monitor.worker.WorkerSettings)
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent))

from completion_monitor import models  # noqa: F401 - register tables
from completion_monitor.database import Base, engine
from completion_monitor.workers.auto_complete_worker import run_auto_complete_worker

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


def create_tables():
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables ready")
    except Exception as e:
        # Another process may have created them first
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another process)")
        else:
            logger.error(f"Failed to create database tables: {e}")


if __name__ == "__main__":
    logger.info("🚀 Starting Auto-Complete Monitor...")
    create_tables()
    try:
        asyncio.run(run_auto_complete_worker())
    except KeyboardInterrupt:
        logger.info("👋 Auto-complete monitor stopped by user")
    except Exception as e:
        logger.error(f"❌ Auto-complete monitor crashed: {e}")
        sys.exit(1)
