"""
Bundle readers for windloads.
"""

from .base import BaseReader, Bundle
from .pickled import PickleReader
from .parquet import ParquetReader, write_parquet

__all__ = ['BaseReader', 'Bundle', 'PickleReader', 'ParquetReader', 'write_parquet']
