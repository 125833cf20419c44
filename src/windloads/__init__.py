"""
windloads: CFD wind loads for time-domain telescope simulations.

This package provides:
- LoadCorpus: reads a bundle of forces and moments time series (pickle or
  Parquet), windows it in time and decimates it
- ChannelSelector: picks the channels delivered to the simulation and the
  inputs they are delivered to
- LoadSource: steps the selected channels in lock-step, one sample per tick
- WindLoading: config-driven wiring of the above

Usage:
    from windloads import LoadCorpus

    source = (LoadCorpus.from_pickle('windloads.pkl')
              .time_window(100.0, 200.0)
              .decimate(2)
              .select()
              .select_all()
              .finalize())

    while (tick := source.advance()) is not None:
        for tag, forces_and_moments in tick:
            ...
"""

from .core import (
    LoadKind,
    LoadTag,
    DEFAULT_TAG_MAP,
    build_tag_map,
    WindLoadsError,
    SourceUnavailable,
    DecodeFailure,
    EmptyCorpus,
    MissingChannel,
    InvalidSampleCount,
    UnsupportedOperation,
    LoadChannel,
    LoadCorpus,
    LoadSource,
    ChannelSelector,
    ConfigManager,
    WindLoading,
)
from .readers import BaseReader, Bundle, PickleReader, ParquetReader

__version__ = "0.1.0"

__all__ = [
    'LoadKind',
    'LoadTag',
    'DEFAULT_TAG_MAP',
    'build_tag_map',
    'WindLoadsError',
    'SourceUnavailable',
    'DecodeFailure',
    'EmptyCorpus',
    'MissingChannel',
    'InvalidSampleCount',
    'UnsupportedOperation',
    'LoadChannel',
    'LoadCorpus',
    'LoadSource',
    'ChannelSelector',
    'ConfigManager',
    'WindLoading',
    'BaseReader',
    'Bundle',
    'PickleReader',
    'ParquetReader',
]
