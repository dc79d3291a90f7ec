"""Servicios del Core (orquestan el cliente remoto a través de sus contratos)."""
