"""Task CLI."""

from etl_base.cli.main import build_cli, run_local

__all__ = ["build_cli", "run_local"]
