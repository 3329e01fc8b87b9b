"""
Pytest configuration for the fem_smoother test suite.

Puts the project root on sys.path so the tests also run from a plain
checkout, and forces a non-interactive matplotlib backend.
"""

import os
import sys
from pathlib import Path

os.environ.setdefault("MPLBACKEND", "Agg")

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))
