"""Salvo: a two-player naval combat game with autonomous and remote players."""

__version__ = "0.1.0"
