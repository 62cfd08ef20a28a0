"""Database layer: declarative base, engine management, column types."""
