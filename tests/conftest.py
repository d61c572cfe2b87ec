"""Test configuration helpers and fixtures."""

import logging
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

for candidate in (SRC, ROOT):
    candidate_str = str(candidate)
    if candidate.exists() and candidate_str not in sys.path:
        sys.path.insert(0, candidate_str)


@pytest.fixture(autouse=True)
def reset_root_logging():
    """CLI runs reconfigure the root logger; drop their handlers afterwards."""
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if type(handler) is logging.StreamHandler and handler.stream not in (sys.stderr, sys.stdout):
            root.removeHandler(handler)
