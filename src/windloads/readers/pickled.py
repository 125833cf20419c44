"""
Pickle reader for windloads.

Reads the bundle format written by the CFD post-processing: a pickled mapping
with an ``outputs`` entry holding the channels and a ``time`` entry holding
the time axis.

Accepted ``outputs`` layouts:
- list of channel variants or None, a variant being ``{name: samples}``
  or ``(name, samples)``
- mapping ``{name: samples}``

Only read bundles from trusted sources: unpickling can execute code.
"""

import logging
import pickle
import struct
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np

from .base import BaseReader, Bundle
from ..core.errors import DecodeFailure, SourceUnavailable
from ..core.types import LoadKind

logger = logging.getLogger(__name__)

# Bundles reach several GB, read them through a large buffer
DEFAULT_BUFFER_SIZE = 64 * 1024 * 1024

# Corrupt payloads surface as any of these, e.g. an opcode announcing a huge
# byte count raises OverflowError or MemoryError
_UNPICKLING_ERRORS = (
    pickle.UnpicklingError,
    EOFError,
    AttributeError,
    ImportError,
    IndexError,
    TypeError,
    ValueError,
    KeyError,
    OverflowError,
    MemoryError,
    struct.error,
)


class PickleReader(BaseReader):
    """Reader for pickled wind loads bundles.

    Example:
        >>> reader = PickleReader()
        >>> bundle = reader.read('windloads.pkl')
        >>> sorted(name for name, data in bundle.channels.items() if data is not None)
        ['OSS_GIR_6F', 'OSS_TopEnd_6F']
    """

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE):
        """Initialize PickleReader.

        Args:
            buffer_size: Read buffer size in bytes
        """
        self._buffer_size = buffer_size

    def read(self, path: Union[str, Path]) -> Bundle:
        """Read and decode a pickled bundle.

        Args:
            path: Path to the pickle file

        Returns:
            Bundle with one entry per known channel (None when missing)

        Raises:
            SourceUnavailable: If the file cannot be opened
            DecodeFailure: If the file is not a valid wind loads bundle
        """
        path = Path(path)
        try:
            f = open(path, 'rb', buffering=self._buffer_size)
        except OSError as e:
            raise SourceUnavailable(f"wind loads data file not found: {path}") from e

        with f:
            try:
                payload = pickle.load(f)
            except _UNPICKLING_ERRORS as e:
                raise DecodeFailure(f"cannot read wind loads data file {path}: {e}") from e

        bundle = self.decode(payload, source=str(path))
        logger.debug(f"Decoded {path} ({len(bundle.time)} time samples)")
        return bundle

    def decode(self, payload: Any, source: Optional[str] = None) -> Bundle:
        """Decode an unpickled payload into a Bundle.

        Args:
            payload: Object returned by pickle.load
            source: Origin of the payload, for error messages

        Returns:
            Bundle with one entry per known channel (None when missing)

        Raises:
            DecodeFailure: If the payload does not have the bundle structure
        """
        where = source or 'bundle'
        if not isinstance(payload, Mapping):
            raise DecodeFailure(
                f"{where}: expected a mapping with 'outputs' and 'time', "
                f"got {type(payload).__name__}"
            )
        missing = [key for key in ('outputs', 'time') if key not in payload]
        if missing:
            raise DecodeFailure(f"{where}: missing entries {missing}")

        channels: Dict[str, Optional[Any]] = {name: None for name in LoadKind.bundle_names()}
        for name, samples in self._variants(payload['outputs'], where):
            if LoadKind.from_name(name) is None:
                raise DecodeFailure(
                    f"{where}: unknown channel '{name}'. "
                    f"Available channels: {LoadKind.bundle_names()}"
                )
            if channels[name] is not None:
                raise DecodeFailure(f"{where}: channel '{name}' appears twice")
            channels[name] = samples

        try:
            time = np.asarray(payload['time'], dtype=np.float64)
        except (ValueError, TypeError) as e:
            raise DecodeFailure(f"{where}: time axis is not numeric") from e
        if time.ndim != 1:
            raise DecodeFailure(f"{where}: time axis must be one-dimensional")

        return Bundle(channels=channels, time=time, source=source)

    def _variants(self, outputs: Any, where: str):
        """Yield (name, samples) for every channel present in ``outputs``."""
        if isinstance(outputs, Mapping):
            for name, samples in outputs.items():
                if samples is not None:
                    yield name, samples
            return

        if not isinstance(outputs, (list, tuple)):
            raise DecodeFailure(
                f"{where}: 'outputs' must be a list or a mapping, "
                f"got {type(outputs).__name__}"
            )
        for item in outputs:
            if item is None:
                continue
            yield self._variant(item, where)

    @staticmethod
    def _variant(item: Any, where: str) -> Tuple[str, Any]:
        """Unpack one channel variant."""
        if isinstance(item, Mapping) and len(item) == 1:
            (name, samples), = item.items()
            return name, samples
        if isinstance(item, (list, tuple)) and len(item) == 2 and isinstance(item[0], str):
            return item[0], item[1]
        raise DecodeFailure(
            f"{where}: channel entries must be {{name: samples}} or (name, samples), "
            f"got {type(item).__name__}"
        )
