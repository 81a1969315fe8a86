import os
import json
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from colorlog import ColoredFormatter

# --- CONSTANTS ---
APP_NAME = "VN Editor"
VERSION = "1.0.0"
IS_WINDOWS = os.name == 'nt'

# --- PATHS ---
# Use %APPDATA% on Windows, ~/.config on Linux/Mac
if IS_WINDOWS:
    CONFIG_DIR = os.path.join(os.environ.get('APPDATA', str(Path.home())), APP_NAME)
else:
    CONFIG_DIR = os.path.join(str(Path.home()), ".config", APP_NAME)

SETTINGS_FILE = os.path.join(CONFIG_DIR, "settings.json")
PROJECTS_FILE = os.path.join(CONFIG_DIR, "projects.json")

# --- ENVIRONMENT ---
load_dotenv()

DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"


def get_api_key() -> Optional[str]:
    """Gemini key; API_KEY is accepted for parity with the web build."""
    return os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")


def get_image_model() -> str:
    return os.getenv("VN_EDITOR_IMAGE_MODEL", DEFAULT_IMAGE_MODEL)


# --- LOGGING ---
LOG_FORMAT = "%(log_color)s%(levelname)-8s%(reset)s %(blue)s[%(name)s]%(reset)s %(message)s"

logger = logging.getLogger("vn_editor")


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Installs the colored console handler on the package logger.

    Safe to call more than once; handlers are only attached the first time.

    Args:
        level: Logging level for the package logger
        log_file: Optional path for a plain-text copy of the log

    Returns:
        The package logger
    """
    logger.setLevel(level)
    if logger.handlers:
        return logger

    formatter = ColoredFormatter(
        LOG_FORMAT,
        datefmt=None,
        reset=True,
        log_colors={'DEBUG': 'cyan', 'INFO': 'green', 'WARNING': 'yellow', 'ERROR': 'red'}
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w')
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(file_handler)

    return logger


# --- EDITOR SETTINGS ---
# Timeline zoom and snap radius; values in settings.json override these.
EDITOR_DEFAULTS = {
    "pixels_per_second": 40.0,
    "snap_threshold_px": 15.0,
}


def load_settings() -> dict:
    """Read settings.json; a missing or unreadable file means no overrides."""
    if not os.path.exists(SETTINGS_FILE):
        return {}
    try:
        with open(SETTINGS_FILE, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Could not read editor settings from {SETTINGS_FILE}: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def save_settings(key: str, value) -> None:
    os.makedirs(CONFIG_DIR, exist_ok=True)

    overrides = load_settings()
    overrides[key] = value

    try:
        with open(SETTINGS_FILE, 'w', encoding='utf-8') as f:
            json.dump(overrides, f, indent=4)
        logger.info(f"Editor setting '{key}' set to {value!r}")
    except OSError as e:
        logger.error(f"Could not write editor settings: {e}")


def get_setting(key: str, default=None):
    """
    Look up an editor setting.

    Order: settings.json, then ``default``, then ``EDITOR_DEFAULTS``.
    """
    overrides = load_settings()
    if key in overrides:
        return overrides[key]
    if default is not None:
        return default
    return EDITOR_DEFAULTS.get(key)
