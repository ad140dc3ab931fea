"""Persistence layer: the DBStorage singleton shared by the whole app.

create_app() calls storage.reload() with the configured database url.
"""
from models.db_storage import DBStorage

storage = DBStorage()
