"""
Service configuration loaded from the environment (.env supported)
"""
import os
from pathlib import Path
from typing import FrozenSet

from dotenv import load_dotenv

load_dotenv()


def _split_list(raw: str) -> FrozenSet[str]:
    """Parse a comma-separated environment value into a set of names"""
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


# Root directory whose JSON templates are indexed
# Default: the directory the service was started from
TEMPLATES_ROOT = Path(os.getenv("TEMPLATES_ROOT", os.getcwd())).resolve()

# Directory names skipped anywhere in the tree
EXCLUDED_DIRS = _split_list(os.getenv("EXCLUDED_DIRS", ".git,node_modules,__pycache__,.venv"))

# File names never indexed, even with a .json extension
EXCLUDED_FILES = _split_list(os.getenv("EXCLUDED_FILES", "package.json,package-lock.json"))

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))

# CORS origins; "*" allows every origin
CORS_ORIGINS = sorted(_split_list(os.getenv("CORS_ORIGINS", "*"))) or ["*"]
