from __future__ import annotations

from ldsync.ui.cli import run

run()
