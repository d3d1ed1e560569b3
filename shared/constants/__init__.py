from .environments import Environment
from .tables import Tables

__all__ = ["Environment", "Tables"]
