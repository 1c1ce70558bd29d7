"""
Persistence package: exposes the DBStorage singleton as `models.storage`.
"""
from models.db_storage import DBStorage

storage = DBStorage()
storage.reload()
