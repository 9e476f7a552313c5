from app.models.store_meta import StoreMeta

__all__ = ["StoreMeta"]
