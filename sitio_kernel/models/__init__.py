"""ORM models."""

from sitio_kernel.models.kv_entry import KeyValueEntry

__all__ = ["KeyValueEntry"]
