"""
Pytest configuration for Template Index tests.
"""

import json
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure the project root is in sys.path so we can import the package directly
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from template_index.main import create_app  # noqa: E402
from template_index.modules.index_store import TemplateIndex  # noqa: E402

EXCLUDED_DIRS = {".git", "node_modules"}
EXCLUDED_FILES = {"package.json", "package-lock.json"}

TEMPLATE_FILES = {
    "a/notify-slack.json": {"name": "Notify Slack"},
    "b/notify-email.json": {"name": "Notify Email"},
    "a/backup.json": {"name": "Backup"},
    "a/shared.json": {"name": "Shared A"},
    "b/shared.json": {"name": "Shared B"},
    "a/nested/calendar-sync.json": {"name": "Calendar Sync"},
    "c/Report.JSON": {"name": "Report"},
    "top-level.json": {"name": "Top"},
    # never indexed
    ".git/ignored.json": {},
    "node_modules/dep/index.json": {},
    "package.json": {"name": "manifest"},
}

# Indexed relative paths in index order
INDEXED_PATHS = [
    "a/backup.json",
    "a/nested/calendar-sync.json",
    "a/notify-slack.json",
    "a/shared.json",
    "b/notify-email.json",
    "b/shared.json",
    "c/Report.JSON",
    "top-level.json",
]


def write_tree(root: Path, files: dict) -> None:
    for rel, payload in files.items():
        target = root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(payload), encoding="utf-8")


@pytest.fixture
def templates_root(tmp_path):
    """Temporary template tree with a mix of indexed and excluded files"""
    root = tmp_path / "templates"
    root.mkdir()
    write_tree(root, TEMPLATE_FILES)
    (root / "notes.md").write_text("# not a template\n", encoding="utf-8")
    return root


@pytest.fixture
def template_index(templates_root):
    return TemplateIndex(templates_root, EXCLUDED_DIRS, EXCLUDED_FILES)


@pytest.fixture
def client(templates_root):
    """FastAPI TestClient serving the temporary template tree."""
    app = create_app(root=templates_root, excluded_dirs=EXCLUDED_DIRS, excluded_files=EXCLUDED_FILES)
    return TestClient(app)


@pytest.fixture
def indexed_paths():
    return list(INDEXED_PATHS)
