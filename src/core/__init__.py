"""Core: dominio, contratos y servicios de resolución (sin I/O)."""
