"""Infrastructure layer: persistence on PostgreSQL through async SQLAlchemy.

Domain repositories build on ``database.BaseRepository`` and never see driver
exceptions; those are translated to ``StorageError`` and ``ConflictError`` here.
"""
