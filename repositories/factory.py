"""Startup-time selection of the user store backend (STORE_BACKEND)."""

from __future__ import annotations

from typing import Optional

from pymongo.asynchronous.database import AsyncDatabase

from config import DatabaseSettings
from repositories.memory_user_repository import InMemoryUserRepository
from repositories.mongo_user_repository import MongoUserRepository
from repositories.protocol import UserRepository


def build_user_repository(
    settings: DatabaseSettings, db: Optional[AsyncDatabase] = None
) -> UserRepository:
    if settings.store_backend == "memory":
        return InMemoryUserRepository()
    if db is None:
        raise ValueError("A database handle is required for the mongo backend")
    return MongoUserRepository(db[settings.users_collection])
