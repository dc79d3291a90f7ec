"""Modelos y entidades del dominio.

Por qué:
- Aquí viven los identificadores ARM y los registros de vault (Pydantic v2).
- El dominio no conoce HTTP, CLI, ni SDKs: solo conceptos del problema.
"""
