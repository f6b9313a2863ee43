"""Infrastructure layer — remote ledger client and local workspace database.

This layer depends on stdlib and third-party libs (httpx, SQLAlchemy).
It must never import from services, commands, or output.
"""
