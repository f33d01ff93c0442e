#!/usr/bin/env python3
"""Test runner script for keycache."""

import sys
import subprocess
from pathlib import Path


def main():
    """Run tests with pytest."""
    project_root = Path(__file__).parent

    # Check if pytest is available
    try:
        import pytest  # noqa: F401
    except ImportError:
        print("❌ pytest is not installed. Please install it with:")
        print("   pip install -e '.[test]'")
        sys.exit(1)

    cmd = [
        sys.executable,
        "-m",
        "pytest",
        str(project_root / "tests"),
        "-v",
        "--tb=short",
        "--color=yes",
    ]

    # Narrow to one area if requested: cache, config, logger
    if len(sys.argv) > 1:
        if sys.argv[1] == "cache":
            cmd[3] = str(project_root / "tests" / "unit" / "cache")
        elif sys.argv[1] == "config":
            cmd[3] = str(project_root / "tests" / "unit" / "test_config.py")
        elif sys.argv[1] == "logger":
            cmd[3] = str(project_root / "tests" / "unit" / "test_logger.py")

    print(f"🧪 Running tests: {' '.join(cmd)}")

    try:
        result = subprocess.run(cmd, cwd=project_root)
        sys.exit(result.returncode)
    except KeyboardInterrupt:
        print("\n⏹️  Tests interrupted by user")
        sys.exit(1)
    except Exception as e:
        print(f"❌ Error running tests: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
