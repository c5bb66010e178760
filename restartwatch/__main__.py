"""Entry point for `python -m restartwatch`.

Usage:
    python -m restartwatch
"""

from __future__ import annotations

from restartwatch.app import run

run()
