from xproject.infrastructure.persistence.atomic_io import atomic_write

__all__ = ["atomic_write"]
