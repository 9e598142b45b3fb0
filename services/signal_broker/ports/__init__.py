from .store import StorePort

__all__ = ["StorePort"]
