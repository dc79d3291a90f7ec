"""CLI `kvresolve` (typer + rich)."""
