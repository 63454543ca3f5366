"""
Configuration loader for the FoodData Central importer.

Reads config.yaml and provides helpers for the database path, log directory,
importer settings and logging setup. All other scripts should import from this
module instead of hardcoding paths.
"""

import logging
import os
import sys
import yaml
from pathlib import Path

# Project root (config.yaml lives here unless FDC_CONFIG points elsewhere)
PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_PATH = PROJECT_ROOT / "config.yaml"

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s %(message)s"
LOG_FILENAME = "fdc_import.log"

IMPORTER_DEFAULTS = {
    "enabled": True,
    "run_on_startup": True,
    "json_path": "data/foods.json",
    "schema": "nutrition",
    "progress_every": 100,
}


def load_config(config_path=None):
    """Load and parse config.yaml"""
    path = Path(config_path or os.environ.get("FDC_CONFIG") or CONFIG_PATH)
    if not path.exists():
        raise FileNotFoundError(
            f"config.yaml not found at {path}. "
            "Copy config.example.yaml to config.yaml and customize it."
        )
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _resolve(raw, default):
    """Expand ~ and anchor relative paths at the project root."""
    path = Path(raw or default).expanduser()
    if not path.is_absolute():
        path = (PROJECT_ROOT / path).resolve()
    return path


def get_db_path(config=None):
    """
    Get path to the DuckDB database.

    Returns:
        Path: Absolute path to fdc.duckdb
    """
    config = load_config() if config is None else config
    db_path = config.get('data', {}).get('db_path')
    return _resolve(db_path, PROJECT_ROOT / 'data' / 'fdc.duckdb')


def get_log_dir(config=None):
    """
    Get path to log directory.

    Returns:
        Path: Absolute path to logs directory
    """
    config = load_config() if config is None else config
    log_dir = config.get('data', {}).get('log_dir')
    path = _resolve(log_dir, PROJECT_ROOT / 'data' / 'logs')

    # Create directory if it doesn't exist
    path.mkdir(parents=True, exist_ok=True)

    return path


def get_importer_settings(config=None):
    """
    Get the importer section merged over its defaults.

    Returns:
        dict: enabled, run_on_startup, json_path (absolute Path), schema,
        progress_every
    """
    config = load_config() if config is None else config
    settings = dict(IMPORTER_DEFAULTS)
    settings.update(config.get('importer') or {})
    settings['json_path'] = _resolve(settings['json_path'], IMPORTER_DEFAULTS['json_path'])
    settings['progress_every'] = int(settings['progress_every'])
    return settings


def get_log_level(config=None):
    config = load_config() if config is None else config
    return str(config.get('logging', {}).get('level', 'INFO')).upper()


def setup_logging(level="INFO", log_file=None):
    """
    Send log records to stdout and, when log_file is given, to that file.

    Safe to call more than once: handlers are replaced, not stacked.
    """
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
