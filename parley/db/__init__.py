"""Database layer: declarative base shared by models and migrations."""
