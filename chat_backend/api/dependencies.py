"""
Dependency injection for FastAPI endpoints.
"""

from chat_backend.storage.database import Database
from chat_backend.users.repository import UserRepository

# Global instances (created on first use, connected during app startup)
_database: Database | None = None
_user_repository: UserRepository | None = None


async def get_database() -> Database:
    """
    Get the process-wide Database handle.

    The handle may be unconnected; the health endpoint reports that
    rather than failing.
    """
    global _database

    if _database is None:
        _database = Database()

    return _database


async def get_user_repository() -> UserRepository:
    """Get the UserRepository bound to the global Database."""
    global _user_repository

    if _user_repository is None:
        _user_repository = UserRepository(await get_database())

    return _user_repository


async def init_storage() -> Database:
    """
    Connect the database and ensure the schema exists.

    Called from the app lifespan; any failure propagates so startup aborts.
    """
    database = await get_database()
    await database.connect()

    repository = await get_user_repository()
    await repository.create_tables()
    return database


async def cleanup_dependencies() -> None:
    """Clean up global dependencies on shutdown."""
    global _database, _user_repository

    _user_repository = None

    if _database is not None:
        await _database.close()
        _database = None
