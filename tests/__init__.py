"""
Telegram Error Logger Test Suite.
"""
import sys
from pathlib import Path

# Ensure project root is at the beginning of sys.path so the package is
# importable without installation
project_root = str(Path(__file__).parent.parent)
if project_root not in sys.path:
    sys.path.insert(0, project_root)
