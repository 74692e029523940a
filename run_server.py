#!/usr/bin/env python3
"""
Azure Storage Cache - MCP Server Runner

Runs the stdio MCP server from a source checkout.
"""

import os
import subprocess
import sys
from pathlib import Path


def main() -> None:
    """Run the Azure Storage Cache MCP server."""
    # Get the project root
    project_root = Path(__file__).parent

    cmd = [sys.executable, "-m", "azure_storage_cache.server"]
    env = {**os.environ, "PYTHONPATH": str(project_root / "src")}

    try:
        subprocess.run(cmd, cwd=project_root, env=env)
    except KeyboardInterrupt:
        print("\nServer stopped.")
    except Exception as e:
        print(f"Error running server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
