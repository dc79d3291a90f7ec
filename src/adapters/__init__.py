"""Adaptadores de I/O (HTTP hacia Azure Resource Manager)."""
