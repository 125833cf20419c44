"""
Base reader interface for windloads.

This module defines the abstract base class for all bundle readers and the
raw container they return.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np


@dataclass
class Bundle:
    """Raw content of a serialized wind loads bundle.

    Attributes:
        channels: Bundle channel name -> samples (None for a missing channel)
        time: Time axis shared by all channels
        source: Where the bundle was read from, for messages
    """
    channels: Dict[str, Optional[Any]] = field(default_factory=dict)
    time: np.ndarray = field(default_factory=lambda: np.empty(0))
    source: Optional[str] = None


class BaseReader(ABC):
    """Abstract base class for bundle readers.

    All readers (PickleReader, ParquetReader, etc.) must implement this
    interface. The ``read`` method takes a file path and returns a Bundle;
    structural validation of the channels is left to LoadCorpus.

    Example:
        >>> class InMemoryReader(BaseReader):
        ...     def read(self, path):
        ...         return Bundle(channels={'OSS_GIR_6F': gir}, time=time)
    """

    @abstractmethod
    def read(self, path: Union[str, Path]) -> Bundle:
        """Read a bundle file.

        Args:
            path: Path to the bundle file

        Returns:
            Bundle with raw channel data and the time axis

        Raises:
            SourceUnavailable: If the file cannot be opened
            DecodeFailure: If the file content cannot be decoded
        """
