"""AI package exports."""

from .random_player import RandomPlayer

__all__ = ["RandomPlayer"]
