#!/usr/bin/env python3
"""
Startup import job for a host process.

A service calls start_background_import() once while it boots. The import
runs on a daemon thread so the host can start serving immediately; if it
fails, the failure is logged and the host keeps serving whatever dataset is
currently committed.

Only one import may run per process. The DDL reset is not safe to race, so a
second call is refused even after the first run has finished.

Usage:
    python src/startup_import.py          # start and wait for the import
    python src/startup_import.py --check  # only report whether it would run
"""

import argparse
import logging
import sys
import threading
from datetime import datetime

from config import (
    LOG_FILENAME, get_db_path, get_importer_settings, get_log_dir, get_log_level,
    load_config, setup_logging,
)
from import_foundation import FoodImportError, ImportConfig, run_import

logger = logging.getLogger(__name__)

_start_lock = threading.Lock()
_started = False


def should_import(settings):
    """
    Decide whether the startup import runs.

    Args:
        settings: dict from config.get_importer_settings()

    Returns:
        bool: True when both enabled and run_on_startup are set
    """
    if not settings.get("enabled"):
        logger.info("USDA food importer is disabled in configuration")
        return False
    if not settings.get("run_on_startup"):
        logger.info("USDA food import on startup is disabled in configuration")
        return False
    return True


def _import_job(import_config):
    try:
        stats = run_import(import_config)
    except FoodImportError as e:
        logger.error("USDA food import failed: %s", e)
        logger.error("Server will continue running with the existing dataset")
        return
    except Exception:
        logger.exception("USDA food import crashed")
        return
    logger.info("USDA food import completed successfully (%d foods)", stats["foods"])


def start_background_import(import_config, settings):
    """
    Launch the importer on a daemon thread, at most once per process.

    Returns:
        threading.Thread: The running import, or None when it was not started
    """
    global _started

    if not should_import(settings):
        return None

    with _start_lock:
        if _started:
            logger.warning("USDA food import already started in this process, skipping")
            return None
        _started = True

    logger.info("Starting USDA food import process...")
    thread = threading.Thread(
        target=_import_job,
        args=(import_config,),
        name="usda-food-import",
        daemon=True,
    )
    thread.start()
    return thread


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run the startup food import")
    parser.add_argument("--check", action="store_true",
                        help="Only report whether the import would run")
    parser.add_argument("--config", help="Path to config.yaml")
    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging(get_log_level(config), get_log_dir(config) / LOG_FILENAME)
    settings = get_importer_settings(config)

    print("🍎 USDA Food Startup Import")
    print(f"⏰ Run time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

    if args.check:
        return 0 if should_import(settings) else 1

    import_config = ImportConfig.from_settings(get_db_path(config), settings)
    thread = start_background_import(import_config, settings)
    if thread is None:
        return 0

    thread.join()
    return 0


if __name__ == "__main__":
    sys.exit(main())
