"""Domain layer — graph models and pure graph functions.

This layer depends only on stdlib, pydantic, and kgmemory.errors.
It must never import from services, infrastructure, commands, or config.
"""
