import logging
import os
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'rulebook' and tests/ importable for 'helpers'
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


from rulebook.core.utils.logging import reset_logging  # noqa: E402
from rulebook.data import clear_caches  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_rulebook_state(monkeypatch):
    """Drop RULEBOOK_* overrides from the developer shell and reset caches.

    A leaked ``RULEBOOK_packages__search_paths`` or ``RULEBOOK_PROJECT_ROOT``
    would silently change where every test looks for packages and config.
    """
    for key in list(os.environ):
        if key.startswith("RULEBOOK_"):
            monkeypatch.delenv(key, raising=False)
    clear_caches()
    root_level = logging.getLogger().level
    yield
    reset_logging()
    logging.getLogger().setLevel(root_level)
    clear_caches()


@pytest.fixture
def project(tmp_path, monkeypatch):
    """Isolated project root: a ``package.json`` marker and cwd set to it."""
    (tmp_path / "package.json").write_text('{"name": "test-project"}\n', encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    return tmp_path
