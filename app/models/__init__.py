# Import all models to ensure they are registered with SQLAlchemy
from . import note, profile

__all__ = [
    "note",
    "profile",
]
