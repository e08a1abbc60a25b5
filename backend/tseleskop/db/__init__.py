"""Database utilities and models."""

from tseleskop.db.base import Base
from tseleskop.db import models  # noqa: F401  (imported for side effects)

__all__ = ["Base"]
