"""WindLoading Facade - Config-driven entry point for windloads.

The facade is a dependency coordinator: it reads the configuration, picks the
bundle reader, prepares the corpus and selects the channels. The work itself
is done by LoadCorpus, ChannelSelector and LoadSource.
"""

import logging
from typing import Dict, Optional

from .config_manager import ConfigManager
from .corpus import LoadCorpus
from .selector import ChannelSelector
from .source import LoadSource
from ..readers.base import BaseReader
from ..readers.parquet import ParquetReader
from ..readers.pickled import PickleReader

logger = logging.getLogger(__name__)

SELECTIONS = ('all', 'asm')


class WindLoading:
    """Main facade for windloads.

    Example:
        >>> wl = WindLoading('config')
        >>> source = wl.source()
        >>> for tick in source:
        ...     step_simulation(tick)

    settings.yaml keys used:
        corpus.path, corpus.data_repo, corpus.reader,
        time_window.t_min, time_window.t_max, decimation, n_sample, selection
    """

    def __init__(self, config_path: str = 'config'):
        """Initialize WindLoading facade.

        Args:
            config_path: Path to config directory (default: 'config')
        """
        self._config_manager = ConfigManager(config_path)
        self._readers: Dict[str, BaseReader] = {
            'pickle': PickleReader(),
            'parquet': ParquetReader(),
        }

    @property
    def config(self) -> ConfigManager:
        """Return the configuration manager."""
        return self._config_manager

    def register_reader(self, reader_type: str, reader: BaseReader):
        """Register a reader for a bundle format.

        Args:
            reader_type: Name used in corpus.reader (e.g. 'hdf5')
            reader: Reader instance implementing BaseReader
        """
        if not isinstance(reader, BaseReader):
            raise TypeError(f"reader must implement BaseReader, got {type(reader)}")
        self._readers[reader_type] = reader

    def _reader(self) -> Optional[BaseReader]:
        reader_type = self._config_manager.get_setting('corpus.reader')
        if reader_type is None:
            return None
        if reader_type not in self._readers:
            raise ValueError(
                f"Unsupported reader '{reader_type}'. "
                f"Available readers: {sorted(self._readers)}"
            )
        return self._readers[reader_type]

    def corpus(self) -> LoadCorpus:
        """Load the bundle and apply the configured time window, decimation
        and sample count.

        Returns:
            Prepared LoadCorpus

        Raises:
            SourceUnavailable, DecodeFailure: If the bundle cannot be loaded
            InvalidSampleCount, EmptyCorpus: If n_sample is invalid
        """
        cm = self._config_manager
        corpus = LoadCorpus.from_file(cm.bundle_path(), self._reader())

        t_min = cm.get_setting('time_window.t_min')
        t_max = cm.get_setting('time_window.t_max')
        if t_min is not None or t_max is not None:
            corpus.time_window(
                float('-inf') if t_min is None else float(t_min),
                float('inf') if t_max is None else float(t_max),
            )

        rate = cm.get_setting('decimation')
        if rate is not None and rate != 1:
            corpus.decimate(rate)

        n_sample = cm.get_setting('n_sample')
        if n_sample is not None:
            corpus.with_sample_count(n_sample)

        return corpus

    def selector(self, corpus: Optional[LoadCorpus] = None) -> ChannelSelector:
        """Apply the configured selection to a corpus.

        ``selection`` is 'all', 'asm' or a list of tag-map keys.

        Args:
            corpus: Corpus to select from (loaded with corpus() if None)

        Returns:
            ChannelSelector holding the selection record
        """
        if corpus is None:
            corpus = self.corpus()
        selector = corpus.select(self._config_manager.tag_map())

        selection = self._config_manager.get_setting('selection', 'all')
        if selection == 'all':
            return selector.select_all()
        if selection == 'asm':
            return selector.select_all_with_asm()
        if isinstance(selection, list):
            for key in selection:
                selector.select(key)
            return selector
        raise ValueError(
            f"selection must be one of {SELECTIONS} or a list of keys, got {selection!r}"
        )

    def source(self, corpus: Optional[LoadCorpus] = None) -> LoadSource:
        """Build the wind loading source described by the configuration."""
        return self.selector(corpus).finalize()

    def __repr__(self) -> str:
        """Return string representation."""
        return f"WindLoading(config={self._config_manager!r})"
