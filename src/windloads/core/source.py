"""
LoadSource - Lock-step streaming of the selected wind loads

The simulation loop calls advance() once per tick and receives one sample per
selected channel, or None once the run is over.

Termination is all-or-nothing: as soon as one channel is exhausted the whole
tick returns None, even if other channels still hold samples. Channels are
expected to share the agreed sample count, so a ragged end means a data or
configuration bug and delivering a partial tick would desynchronize the loads
applied to different parts of the structure. Do not turn this into per-channel
partial output; downstream code relies on every tick being complete.
"""

from typing import Hashable, Iterable, Iterator, List, Optional, Tuple

import numpy as np

from .errors import UnsupportedOperation

Tick = List[Tuple[Hashable, np.ndarray]]


class LoadSource:
    """Wind loading source.

    Holds the tagged time series of wind forces and moments and steps through
    them together. A source is single-pass: rebuild it from the corpus to
    replay the loads. It is driven by one loop and is not safe for concurrent
    stepping.

    Attributes:
        _loads: Tuple of (tag, sample iterator) pairs in output order
        _n_sample: Agreed number of ticks

    Example:
        >>> source = corpus.select().topend().gir().finalize()
        >>> while (tick := source.advance()) is not None:
        ...     for tag, vector in tick:
        ...         solver.set_input(tag, vector)
    """

    __slots__ = ('_loads', '_n_sample')

    def __init__(self, loads: Iterable[Tuple[Hashable, Iterable[np.ndarray]]], n_sample: int):
        """Initialize LoadSource.

        Args:
            loads: (tag, samples) pairs; samples are consumed lazily
            n_sample: Agreed number of ticks
        """
        self._loads: Tuple[Tuple[Hashable, Iterator[np.ndarray]], ...] = tuple(
            (tag, iter(samples)) for tag, samples in loads
        )
        self._n_sample = int(n_sample)

    @property
    def n_sample(self) -> int:
        """Return the agreed number of ticks."""
        return self._n_sample

    @property
    def tags(self) -> Tuple[Hashable, ...]:
        """Return the output tags in order."""
        return tuple(tag for tag, _ in self._loads)

    def outputs_tags(self) -> Tuple[Hashable, ...]:
        """Return the output tags in order."""
        return self.tags

    def inputs_tags(self):
        """The source takes no inputs."""
        raise UnsupportedOperation("WindLoading takes no inputs")

    def inputs(self, data=None):
        """The source takes no inputs.

        Raises:
            UnsupportedOperation: Always
        """
        raise UnsupportedOperation("WindLoading takes no inputs")

    def advance(self) -> Optional[Tick]:
        """Step every channel by one sample.

        Channels are advanced in output order and stepping stops at the first
        exhausted channel, which is then the end of the run for all of them.

        Returns:
            List of (tag, sample) pairs, or None once any channel is exhausted
        """
        tick: Tick = []
        for tag, samples in self._loads:
            sample = next(samples, None)
            if sample is None:
                return None
            tick.append((tag, sample))
        return tick

    def __iter__(self) -> Iterator[Tick]:
        """Iterate over ticks until the source is exhausted.

        A source without channels never runs dry, so it yields n_sample empty
        ticks.
        """
        if not self._loads:
            for _ in range(self._n_sample):
                yield []
            return
        while True:
            tick = self.advance()
            if tick is None:
                return
            yield tick

    def __len__(self) -> int:
        return self._n_sample

    def __repr__(self) -> str:
        """Return string representation."""
        tags = [getattr(tag, 'value', tag) for tag in self.tags]
        return f"LoadSource(n_sample={self._n_sample}, outputs={tags})"
