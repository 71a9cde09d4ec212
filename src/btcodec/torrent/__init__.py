"""
Torrent metainfo records.
"""
from .metainfo import File, Info, Metainfo

__all__ = ['File', 'Info', 'Metainfo']
