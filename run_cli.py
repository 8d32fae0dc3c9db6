#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
I2Localizer CLI Launcher
Cross-platform command line interface
"""

import sys
from pathlib import Path

# Ensure stdout uses UTF-8 (Persian output on Windows consoles)
if hasattr(sys.stdout, "reconfigure"):
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")
if hasattr(sys.stderr, "reconfigure"):
    sys.stderr.reconfigure(encoding="utf-8", errors="replace")


def setup_environment() -> None:
    """Add the project root to the Python path."""
    project_root = Path(__file__).parent
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))


def main() -> int:
    setup_environment()
    from i2localizer.cli_main import main as cli_main
    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
