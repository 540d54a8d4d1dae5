__version__ = "0.4.2"
__description__ = "JSON:API serialization and query planning for in-memory objects"
