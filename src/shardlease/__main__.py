"""Main entry point for the shardlease CLI.

Usage:
    python -m shardlease --help
    shardlease --help  # If installed via pip/uv
"""

from shardlease.cli import main

if __name__ == "__main__":
    main()
