#!/usr/bin/env python3
"""
Editor entrypoint - terminal editor for the content collections.
"""

import sys
from pathlib import Path

# Load environment variables from .env file first
import dotenv
dotenv.load_dotenv()

# Project root holds cms/, tui/ and util/
sys.path.insert(0, str(Path(__file__).parent.parent))


def main():
    """Editor entrypoint - validates configuration and launches the TUI."""
    try:
        from tui.main import main as tui_main
        tui_main()
    except KeyboardInterrupt:
        print("\nℹ️  Editor interrupted")
        return 0
    except Exception as e:
        print(f"❌ Editor startup failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
