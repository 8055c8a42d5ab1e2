"""Infrastructure layer — record codec and backing-file stores.

This layer depends on stdlib, pydantic, and the domain models.
It must never import from services, commands, mcp, or output.
The service layer bridges between domain functions and infrastructure.
"""
