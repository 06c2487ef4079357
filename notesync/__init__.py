"""
Note Persistence and Sync Engine.

- core/: Configuration, logging, exceptions, resilience, concurrency
- schemas/: Note, identifier, session and result schemas (pydantic)
- storage/: Local key-value storage and remote document stores
- models/, repositories/: SQLAlchemy tables backing the SQL document store
- adapters/: Guest, pending and remote note adapters
- services/: Notebook facade, identity router, sync reconciler, connectivity
- events/: Event envelope and in-process event bus
- cli.py: Command line client (Typer + Rich)
"""
