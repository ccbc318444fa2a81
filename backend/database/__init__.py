"""
Database package initialization.
Session factory, declarative base and the get_db dependency.
"""

from database.connection import get_db, init_db, Base, engine, SessionLocal

__all__ = ["Base", "engine", "SessionLocal", "get_db", "init_db"]
