"""
Package entry point for launching skills_manager.

This allows running:
  - python -m skills_manager            -> starts the stdio MCP server
  - python -m skills_manager --help     -> CLI for inspection and one-shot mutations

The entry point delegates to skills_manager.server.cli_main().
"""

from skills_manager.server import cli_main


def main() -> None:
    raise SystemExit(cli_main())


if __name__ == "__main__":
    main()
