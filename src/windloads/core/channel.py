"""
LoadChannel - Forces and moments time series of one attachment point

Wraps a 2-D numpy array of shape (T, W) where T is the number of time samples
and W the sample width. Each sample holds one or more 6-wide groups of
3 forces and 3 moments, one group per structural node.

A channel only shrinks: windowing and decimation are the only operations that
change its length, and both act in place.
"""

from typing import Iterator, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .types import COMPONENTS, NODE_WIDTH, LoadKind


class LoadChannel:
    """Time series of force and moment samples tagged with its location.

    Attributes:
        _kind: Attachment point of the loads (LoadKind)
        _samples: float64 array with shape (T, W), W a positive multiple of 6

    Example:
        >>> samples = np.zeros((1000, 6))
        >>> channel = LoadChannel(LoadKind.TOP_END, samples)
        >>> len(channel.window(100, 200).decimate(2))
        50
    """

    def __init__(
        self,
        kind: Union[LoadKind, str],
        samples,
        width: Optional[int] = None
    ):
        """Initialize LoadChannel.

        Args:
            kind: LoadKind member or bundle channel name
            samples: Sequence of equal-length numeric samples, or a 2-D array
            width: Sample width, only needed for an empty 1-D ``samples``

        Raises:
            ValueError: If kind is unknown, samples are ragged or not numeric,
                or the sample width is not a positive multiple of 6
        """
        if not isinstance(kind, LoadKind):
            resolved = LoadKind.from_name(kind)
            if resolved is None:
                raise ValueError(
                    f"Unknown load channel '{kind}'. "
                    f"Available channels: {LoadKind.bundle_names()}"
                )
            kind = resolved
        self._kind = kind
        self._samples = self._as_array(samples, width)

    def _as_array(self, samples, width: Optional[int]) -> np.ndarray:
        """Convert samples to a validated (T, W) float64 array."""
        try:
            array = np.array(samples, dtype=np.float64)
        except (ValueError, TypeError) as e:
            raise ValueError(
                f"{self._kind.value}: samples must be equal-length numeric vectors"
            ) from e

        if array.ndim == 1 and array.size == 0 and width is not None:
            array = array.reshape(0, width)

        if array.ndim != 2:
            raise ValueError(
                f"{self._kind.value}: expected a (time, dof) array, "
                f"got {array.ndim} dimension(s)"
            )

        n_dof = array.shape[1]
        if n_dof == 0 or n_dof % NODE_WIDTH != 0:
            raise ValueError(
                f"{self._kind.value}: sample width must be a positive multiple "
                f"of {NODE_WIDTH}, got {n_dof}"
            )
        return array

    @property
    def kind(self) -> LoadKind:
        """Return the attachment point of this channel."""
        return self._kind

    @property
    def name(self) -> str:
        """Return the bundle name of this channel."""
        return self._kind.value

    @property
    def width(self) -> int:
        """Return the number of values per sample."""
        return self._samples.shape[1]

    @property
    def samples(self) -> np.ndarray:
        """Return a read-only view of the samples."""
        view = self._samples.view()
        view.flags.writeable = False
        return view

    def length(self) -> int:
        """Return the number of samples in the time series."""
        return self._samples.shape[0]

    def __len__(self) -> int:
        return self.length()

    def decimate(self, rate: int) -> 'LoadChannel':
        """Keep every ``rate``-th sample, starting with the first one.

        Args:
            rate: Decimation rate, a positive integer (1 leaves the channel as is)

        Returns:
            self, for chaining

        Raises:
            ValueError: If rate is not a positive integer
        """
        check_rate(rate)
        if rate > 1:
            self._samples = self._samples[::rate].copy()
        return self

    def window(self, min_index: int, max_index: int) -> 'LoadChannel':
        """Keep the samples in ``[min_index, max_index)``.

        A range with ``max_index < min_index`` empties the channel; the sample
        width is kept.

        Args:
            min_index: First sample index kept
            max_index: Index one past the last sample kept

        Returns:
            self, for chaining

        Raises:
            ValueError: If an index is negative
        """
        if min_index < 0 or max_index < 0:
            raise ValueError(
                f"window indices must be non-negative, got [{min_index}, {max_index})"
            )
        if max_index < min_index:
            max_index = min_index
        self._samples = self._samples[min_index:max_index].copy()
        return self

    def head(self, n: Optional[int] = None) -> np.ndarray:
        """Return a copy of the first ``n`` samples (all samples if n is None)."""
        if n is None:
            return self._samples.copy()
        return self._samples[:n].copy()

    def into_samples(self) -> Iterator[np.ndarray]:
        """Consume the channel and iterate over its samples in time order.

        The channel is left empty (with its width kept).
        """
        samples = self._samples
        self._samples = np.empty((0, samples.shape[1]), dtype=np.float64)
        return iter(samples)

    def columns(self) -> Sequence[str]:
        """Return one label per sample value: Fx..Mz, suffixed by node if several."""
        n_nodes = self.width // NODE_WIDTH
        if n_nodes == 1:
            return list(COMPONENTS)
        return [f"{c}_{node}" for node in range(n_nodes) for c in COMPONENTS]

    def to_frame(self, time: Optional[Sequence[float]] = None) -> pd.DataFrame:
        """Export the channel to a (T, W) DataFrame.

        Args:
            time: Optional time axis used as index, must match the channel length

        Returns:
            DataFrame with one column per force/moment component

        Raises:
            ValueError: If time length differs from the channel length
        """
        index = None
        if time is not None:
            if len(time) != self.length():
                raise ValueError(
                    f"{self.name}: time axis has {len(time)} samples, "
                    f"channel has {self.length()}"
                )
            index = pd.Index(np.asarray(time, dtype=np.float64), name='time')
        return pd.DataFrame(self._samples.copy(), index=index, columns=self.columns())

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"LoadChannel(kind={self._kind.name}, "
            f"samples={self.length()}, width={self.width})"
        )


def check_rate(rate: int) -> None:
    """Reject decimation rates that are not positive integers."""
    if isinstance(rate, bool) or not isinstance(rate, (int, np.integer)) or rate < 1:
        raise ValueError(f"decimation rate must be a positive integer, got {rate!r}")
