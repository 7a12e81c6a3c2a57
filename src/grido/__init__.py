"""Grido: place multi-cell pieces, complete squares, chain explosions."""

__version__ = "0.1.0"
