from . import aliases

__all__ = ("aliases",)
