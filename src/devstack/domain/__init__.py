"""Domain layer — infra kinds, pattern catalog, service table, value models.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
