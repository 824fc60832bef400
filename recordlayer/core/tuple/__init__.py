from .single_float import SingleFloat
from .encoding import pack, unpack

__all__ = ["SingleFloat", "pack", "unpack"]
