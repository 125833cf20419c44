"""
LoadCorpus - Deserialized wind loads of one CFD scenario

Holds every known channel (None when the scenario does not provide it) and the
shared time axis. Windowing and decimation act on all present channels and on
the time axis together, so every present channel always has as many samples
as the time axis.

Usage:
    corpus = (LoadCorpus.from_pickle('windloads.pkl')
              .time_window(100.0, 200.0)
              .decimate(2)
              .with_sample_count(40))
    source = corpus.select().select_all().finalize()
"""

import logging
from pathlib import Path
from typing import Dict, Hashable, List, Mapping, Optional, Union

import numpy as np
import pandas as pd
import xarray as xr

from .channel import LoadChannel, check_rate
from .errors import DecodeFailure, EmptyCorpus, InvalidSampleCount, MissingChannel
from .selector import ChannelSelector
from .types import LoadKind
from ..readers.base import BaseReader, Bundle
from ..readers.parquet import ParquetReader
from ..readers.pickled import PickleReader

logger = logging.getLogger(__name__)

READERS_BY_SUFFIX = {
    '.pkl': PickleReader,
    '.pickle': PickleReader,
    '.parquet': ParquetReader,
}


class LoadCorpus:
    """Wind loads builder.

    Reads the forces and moments time series of a scenario, trims them in time
    and hands the selected channels over to a ChannelSelector.

    Attributes:
        _channels: LoadKind -> LoadChannel or None, in LoadKind order
        _time: Time axis (1-D float64 array)
        _n_sample: Optional explicit sample count set by with_sample_count()
        _source: Where the corpus was read from, if anywhere
    """

    def __init__(
        self,
        channels: Mapping[Union[LoadKind, str], object],
        time,
        source: Optional[str] = None
    ):
        """Initialize LoadCorpus and validate its structure.

        Args:
            channels: LoadKind or bundle name -> LoadChannel, 2-D samples or None.
                Kinds not listed are missing from the corpus.
            time: Time axis shared by all channels, non-decreasing
            source: Origin of the data, for messages

        Raises:
            DecodeFailure: If a channel is unknown or malformed, the time axis
                is not a non-decreasing 1-D sequence or a channel length differs
                from the time axis length
        """
        where = source or 'corpus'
        self._source = source
        self._n_sample: Optional[int] = None

        try:
            self._time = np.array(time, dtype=np.float64)
        except (ValueError, TypeError) as e:
            raise DecodeFailure(f"{where}: time axis is not numeric") from e
        if self._time.ndim != 1:
            raise DecodeFailure(f"{where}: time axis must be one-dimensional")
        if np.any(np.diff(self._time) < 0):
            raise DecodeFailure(f"{where}: time axis must be non-decreasing")

        self._channels: Dict[LoadKind, Optional[LoadChannel]] = {kind: None for kind in LoadKind}
        for key, data in channels.items():
            kind = key if isinstance(key, LoadKind) else LoadKind.from_name(key)
            if kind is None:
                raise DecodeFailure(
                    f"{where}: unknown channel '{key}'. "
                    f"Available channels: {LoadKind.bundle_names()}"
                )
            if data is None:
                continue
            self._channels[kind] = self._as_channel(kind, data, where)

        for channel in self._present_channels():
            if len(channel) != len(self._time):
                raise DecodeFailure(
                    f"{where}: channel '{channel.name}' has {len(channel)} samples, "
                    f"time axis has {len(self._time)}"
                )

    @staticmethod
    def _as_channel(kind: LoadKind, data, where: str) -> LoadChannel:
        """Wrap raw samples into a LoadChannel, reporting errors as DecodeFailure."""
        if isinstance(data, LoadChannel):
            if data.kind is not kind:
                raise DecodeFailure(
                    f"{where}: channel '{data.name}' stored under '{kind.value}'"
                )
            # Own copy: the caller keeps no handle on the corpus channels
            return LoadChannel(kind, data.head())
        try:
            return LoadChannel(kind, data)
        except ValueError as e:
            raise DecodeFailure(f"{where}: {e}") from e

    # ------------------------------------------------------------------
    # Construction from files
    # ------------------------------------------------------------------

    @classmethod
    def from_bundle(cls, bundle: Bundle) -> 'LoadCorpus':
        """Build a corpus from a decoded Bundle."""
        return cls(bundle.channels, bundle.time, source=bundle.source)

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        reader: Optional[BaseReader] = None
    ) -> 'LoadCorpus':
        """Read a corpus from a bundle file.

        Args:
            path: Path to the bundle
            reader: Reader to use; if None, picked from the file suffix
                (.pkl/.pickle -> PickleReader, .parquet -> ParquetReader)

        Returns:
            LoadCorpus with the bundle channels

        Raises:
            SourceUnavailable: If the file cannot be opened
            DecodeFailure: If the file cannot be decoded, or no reader matches
                the file suffix
        """
        path = Path(path)
        if reader is None:
            reader_cls = READERS_BY_SUFFIX.get(path.suffix.lower())
            if reader_cls is None:
                raise DecodeFailure(
                    f"{path}: no reader for '{path.suffix}' files. "
                    f"Supported: {sorted(READERS_BY_SUFFIX)}"
                )
            reader = reader_cls()

        corpus = cls.from_bundle(reader.read(path))
        logger.info(
            f"Loaded wind loads from {path}: {len(corpus)} samples, "
            f"channels {[kind.value for kind in corpus.present()]}"
        )
        return corpus

    @classmethod
    def from_pickle(cls, path: Union[str, Path]) -> 'LoadCorpus':
        """Read a corpus from a pickled bundle."""
        return cls.from_file(path, PickleReader())

    @classmethod
    def from_parquet(cls, path: Union[str, Path]) -> 'LoadCorpus':
        """Read a corpus from a long-format Parquet bundle."""
        return cls.from_file(path, ParquetReader())

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def time(self) -> np.ndarray:
        """Return a copy of the time axis."""
        return self._time.copy()

    @property
    def channels(self) -> Dict[LoadKind, Optional[LoadChannel]]:
        """Return the kind -> channel mapping (None for missing channels)."""
        return dict(self._channels)

    @property
    def sample_count_override(self) -> Optional[int]:
        """Return the explicit sample count, if one was set."""
        return self._n_sample

    def present(self) -> List[LoadKind]:
        """Return the kinds that hold data, in canonical order."""
        return [kind for kind, channel in self._channels.items() if channel is not None]

    def _present_channels(self) -> List[LoadChannel]:
        return [channel for channel in self._channels.values() if channel is not None]

    def __contains__(self, key: Union[LoadKind, str]) -> bool:
        kind = key if isinstance(key, LoadKind) else LoadKind.from_name(key)
        return kind is not None and self._channels[kind] is not None

    def __getitem__(self, key: Union[LoadKind, str]) -> LoadChannel:
        kind = key if isinstance(key, LoadKind) else LoadKind.from_name(key)
        if kind is None or self._channels[kind] is None:
            raise MissingChannel(f"no '{getattr(kind, 'value', key)}' loads in {self._where}")
        return self._channels[kind]

    def __len__(self) -> int:
        """Return the number of samples of the time axis."""
        return len(self._time)

    @property
    def _where(self) -> str:
        return self._source or 'corpus'

    def __repr__(self) -> str:
        """Return string representation."""
        names = [kind.name for kind in self.present()]
        return (
            f"LoadCorpus(samples={len(self)}, "
            f"channels={names}, "
            f"n_sample={self._n_sample})"
        )

    # ------------------------------------------------------------------
    # Transforms
    # ------------------------------------------------------------------

    def time_window(self, t_min: float, t_max: float) -> 'LoadCorpus':
        """Keep the samples with time in ``[t_min, t_max)``.

        The lower index is the first time sample >= t_min (0 if there is none),
        the upper index the first time sample >= t_max (the axis length if
        there is none). Both are resolved before any channel is touched.

        Args:
            t_min: Start time, inclusive
            t_max: End time, exclusive

        Returns:
            self, for chaining

        Raises:
            InvalidSampleCount: If a sample count is set and the window would
                leave fewer samples
        """
        min_index = _first_index_at_or_after(self._time, t_min, default=0)
        max_index = _first_index_at_or_after(self._time, t_max, default=len(self._time))
        logger.debug(f"Time window [{t_min}, {t_max}) -> samples [{min_index}, {max_index})")

        kept = slice(min_index, max(min_index, max_index))
        self._check_override(
            [len(range(len(channel))[kept]) for channel in self._present_channels()],
            f"time window [{t_min}, {t_max})",
        )
        for channel in self._present_channels():
            channel.window(min_index, max_index)
        self._time = self._time[min_index:max(min_index, max_index)].copy()
        return self

    def decimate(self, rate: int) -> 'LoadCorpus':
        """Keep every ``rate``-th sample of every channel.

        Args:
            rate: Decimation rate, a positive integer

        Returns:
            self, for chaining

        Raises:
            ValueError: If rate is not a positive integer
            InvalidSampleCount: If a sample count is set and decimation would
                leave fewer samples
        """
        check_rate(rate)
        self._check_override(
            [len(range(len(channel))[::rate]) for channel in self._present_channels()],
            f"decimation by {rate}",
        )
        for channel in self._present_channels():
            channel.decimate(rate)
        self._time = self._time[::rate].copy()
        logger.debug(f"Decimated by {rate} -> {len(self._time)} samples")
        return self

    def _check_override(self, lengths: List[int], transform: str) -> None:
        """Reject a transform that would leave fewer samples than the set count."""
        if self._n_sample is None or not lengths:
            return
        if min(lengths) < self._n_sample:
            raise InvalidSampleCount(
                f"{transform} leaves {min(lengths)} samples, "
                f"fewer than the sample count ({self._n_sample})"
            )

    def with_sample_count(self, n: int) -> 'LoadCorpus':
        """Set the number of samples delivered by each selected channel.

        Args:
            n: Sample count, between 1 and the length of the shortest channel

        Returns:
            self, for chaining

        Raises:
            InvalidSampleCount: If n is not a positive integer or exceeds the
                length of a present channel
            EmptyCorpus: If no channel holds data
        """
        if isinstance(n, bool) or not isinstance(n, (int, np.integer)) or n < 1:
            raise InvalidSampleCount(f"sample count must be greater than 0, got {n!r}")

        lengths = [len(channel) for channel in self._present_channels()]
        if not lengths:
            raise EmptyCorpus(f"no data available in {self._where}")
        if n > min(lengths):
            raise InvalidSampleCount(
                f"sample count cannot be greater than the number of samples ({min(lengths)}), "
                f"got {n}"
            )
        self._n_sample = int(n)
        return self

    @property
    def n_sample(self) -> int:
        """Return the agreed sample count.

        The explicit count if set, otherwise the length of the first present
        channel.

        Raises:
            EmptyCorpus: If no count was set and no channel holds data
        """
        if self._n_sample is not None:
            return self._n_sample
        for channel in self._present_channels():
            return len(channel)
        raise EmptyCorpus(f"couldn't get the number of samples: no data available in {self._where}")

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def lookup(self, kind: LoadKind, n: Optional[int] = None) -> np.ndarray:
        """Return a copy of a channel samples.

        Args:
            kind: Channel to look up
            n: Number of leading samples to return (all if None)

        Returns:
            float64 array with shape (n or T, W)

        Raises:
            MissingChannel: If the channel is absent
        """
        return self[kind].head(n)

    def select(self, tag_map: Optional[Mapping[Hashable, LoadKind]] = None) -> ChannelSelector:
        """Start a channel selection on this corpus.

        Args:
            tag_map: Key -> LoadKind lookup table (defaults to DEFAULT_TAG_MAP)

        Returns:
            ChannelSelector
        """
        return ChannelSelector(self, tag_map=tag_map)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_dataset(self) -> xr.Dataset:
        """Export the present channels to an xarray Dataset.

        Returns:
            Dataset with one variable per channel (named after the bundle
            name) on dims (time, <name>_dof)
        """
        data_vars = {}
        for channel in self._present_channels():
            dof = f"{channel.name}_dof"
            data_vars[channel.name] = xr.DataArray(
                channel.head(),
                dims=['time', dof],
                coords={dof: channel.columns()},
            )
        return xr.Dataset(data_vars, coords={'time': self._time.copy()})

    def to_frame(self) -> pd.DataFrame:
        """Export the present channels to a long-format DataFrame.

        Returns:
            DataFrame with columns sample, time, channel, dof, value, the
            layout read by ParquetReader
        """
        frames = []
        for channel in self._present_channels():
            n_samples, width = channel.head().shape
            frames.append(pd.DataFrame({
                'sample': np.repeat(np.arange(n_samples), width),
                'time': np.repeat(self._time, width),
                'channel': channel.name,
                'dof': np.tile(np.arange(width), n_samples),
                'value': channel.head().ravel(),
            }))
        if not frames:
            return pd.DataFrame(columns=['sample', 'time', 'channel', 'dof', 'value'])
        return pd.concat(frames, ignore_index=True)


def _first_index_at_or_after(time: np.ndarray, t: float, default: int) -> int:
    """Return the first index with ``time[index] >= t``, or ``default``."""
    hits = np.flatnonzero(time >= t)
    return int(hits[0]) if hits.size else default
