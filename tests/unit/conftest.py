# tests/unit/conftest.py
"""
Shared pytest configuration for unit tests.

Ensures the project root is at the front of sys.path so the
telegram_error_logger package resolves to the working tree.
"""
import sys
import os

# Add project root to path FIRST to ensure proper import resolution
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
if project_root in sys.path:
    sys.path.remove(project_root)
sys.path.insert(0, project_root)
