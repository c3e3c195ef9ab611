"""Datastore layer — async SQLAlchemy engine and session management."""
