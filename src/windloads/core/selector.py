"""
ChannelSelector - Picks the corpus channels delivered to the simulation

Each selector looks a channel up in the corpus, copies its samples (truncated
to the corpus sample count override when one is set) and appends a
(tag, samples) pair to the selection record. The record order is the output
order of the finalized LoadSource.

Selectors raise on the first failure; composite selectors restore the
selection record before re-raising so a failed call leaves no partial state.
"""

import logging
from typing import Hashable, List, Mapping, Optional, Tuple

import numpy as np

from .errors import InvalidSampleCount, MissingChannel, UnsupportedOperation
from .source import LoadSource
from .types import DEFAULT_TAG_MAP, LoadKind, LoadTag

logger = logging.getLogger(__name__)


class ChannelSelector:
    """Selection record builder over a LoadCorpus.

    Args:
        corpus: LoadCorpus to select channels from
        tag_map: Key -> LoadKind lookup table used by select()

    Example:
        >>> source = (corpus.select()
        ...           .topend()
        ...           .m1_segments()
        ...           .m2_segments_into('MCM2LclForce6F')
        ...           .finalize())
        >>> source.tags
        (<LoadTag.OSS_TOP_END_6F: 'OSSTopEnd6F'>, ...)
    """

    def __init__(self, corpus, tag_map: Optional[Mapping[Hashable, LoadKind]] = None):
        self._corpus = corpus
        self._tag_map = tag_map if tag_map is not None else DEFAULT_TAG_MAP
        self._selection: List[Tuple[Hashable, np.ndarray]] = []
        self._finalized = False

    @property
    def tags(self) -> Tuple[Hashable, ...]:
        """Return the tags selected so far, in output order."""
        return tuple(tag for tag, _ in self._selection)

    def __len__(self) -> int:
        return len(self._selection)

    def resolve(self, key: Hashable) -> LoadKind:
        """Resolve a key to the channel it designates.

        Raises:
            MissingChannel: If the key is not in the tag map
        """
        try:
            return self._tag_map[key]
        except (KeyError, TypeError):
            raise MissingChannel(f"no wind loads channel matches '{key}'") from None

    def select(self, key: Hashable, tag: Optional[Hashable] = None) -> 'ChannelSelector':
        """Select the channel designated by ``key``.

        The samples are truncated to the corpus sample count override when one
        is set, whatever the key.

        Args:
            key: Any key of the tag map (LoadTag, LoadKind, their names or an
                externally registered identifier)
            tag: Tag the samples are emitted under (defaults to key)

        Returns:
            self, for chaining

        Raises:
            MissingChannel: If the key is unknown or the channel is absent
        """
        self._check_open()
        kind = self.resolve(key)
        samples = self._corpus.lookup(kind, self._corpus.sample_count_override)
        tag = key if tag is None else tag
        self._selection.append((tag, samples))
        logger.debug(f"Selected {kind.value} as {getattr(tag, 'value', tag)} ({len(samples)} samples)")
        return self

    # ------------------------------------------------------------------
    # Named selectors
    # ------------------------------------------------------------------

    def topend(self) -> 'ChannelSelector':
        """Selects loads on the top-end."""
        return self.select(LoadTag.OSS_TOP_END_6F)

    def truss(self) -> 'ChannelSelector':
        """Selects loads on the trusses."""
        return self.select(LoadTag.OSS_TRUSS_6F)

    def gir(self) -> 'ChannelSelector':
        """Selects loads on the GIR."""
        return self.select(LoadTag.OSS_GIR_6F)

    def cring(self) -> 'ChannelSelector':
        """Selects loads on the C-rings."""
        return self.select(LoadTag.OSS_CRING_6F)

    def m1_cell(self) -> 'ChannelSelector':
        """Selects loads on the M1 cells."""
        return self.select(LoadTag.OSS_CELL_LCL_6F)

    def m1_segments(self) -> 'ChannelSelector':
        """Selects loads on the M1 segments."""
        return self.select(LoadTag.OSS_M1_LCL_6F)

    def m1_covers(self) -> 'ChannelSelector':
        """Selects loads on the M1 mirror covers."""
        return self.select(LoadTag.OSS_MIRROR_COVERS_6F)

    def m2_segments(self) -> 'ChannelSelector':
        """Selects loads on the M2 segments."""
        return self.select(LoadTag.MC_M2_LCL_FORCE_6F)

    def m2_segments_into(self, key: Hashable) -> 'ChannelSelector':
        """Associates an externally defined input with the M2 segments tag.

        The channel is looked up with ``key`` (e.g. a FEM input name registered
        in the tag map) and emitted as MCM2LclForce6F.
        """
        return self.select(key, tag=LoadTag.MC_M2_LCL_FORCE_6F)

    def m2_asm_topend(self) -> 'ChannelSelector':
        """Selects the top-end loads for the ASM top-end input."""
        return self.select(LoadTag.MC_M2_TE_6F)

    def m2_asm_reference_bodies(self) -> 'ChannelSelector':
        """Selects the M2 segment loads for the ASM reference bodies input."""
        return self.select(LoadTag.MC_M2_RB_6F)

    # ------------------------------------------------------------------
    # Composite selectors
    # ------------------------------------------------------------------

    def select_all(self) -> 'ChannelSelector':
        """Selects all loads.

        Order: top-end, M2 segments, truss, M1 segments, M1 cells, GIR, C-ring.
        """
        return self._select_sequence([
            self.topend,
            self.m2_segments,
            self.truss,
            self.m1_segments,
            self.m1_cell,
            self.gir,
            self.cring,
        ])

    def select_all_with_asm(self) -> 'ChannelSelector':
        """Selects all loads in the ASM configuration.

        Order: ASM top-end, ASM reference bodies, truss, M1 segments, M1 cells,
        GIR, C-ring.
        """
        return self._select_sequence([
            self.m2_asm_topend,
            self.m2_asm_reference_bodies,
            self.truss,
            self.m1_segments,
            self.m1_cell,
            self.gir,
            self.cring,
        ])

    def _select_sequence(self, selectors) -> 'ChannelSelector':
        """Run selectors in order, rolling the record back if one fails."""
        checkpoint = len(self._selection)
        try:
            for selector in selectors:
                selector()
        except Exception:
            del self._selection[checkpoint:]
            raise
        return self

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    def finalize(self) -> LoadSource:
        """Builds the wind loading source.

        Every selected stream is cut to the corpus sample count, so the source
        yields exactly ``n_sample`` ticks even if the corpus was transformed
        after the selection.

        Returns:
            LoadSource stepping the selected channels in lock-step

        Raises:
            EmptyCorpus: If the sample count cannot be inferred
            InvalidSampleCount: If a selected stream holds fewer samples than
                the sample count
            UnsupportedOperation: If the selector was already finalized
        """
        self._check_open()
        n_sample = self._corpus.n_sample
        short = [
            f"{getattr(tag, 'value', tag)} ({len(samples)})"
            for tag, samples in self._selection
            if len(samples) < n_sample
        ]
        if short:
            raise InvalidSampleCount(
                f"selected loads hold fewer samples than the sample count ({n_sample}): "
                f"{', '.join(short)}"
            )
        source = LoadSource(
            [(tag, samples[:n_sample]) for tag, samples in self._selection],
            n_sample,
        )
        self._selection = []
        self._finalized = True
        logger.info(
            f"Wind loading source ready: {n_sample} samples, "
            f"outputs {[getattr(tag, 'value', tag) for tag in source.tags]}"
        )
        return source

    def _check_open(self) -> None:
        if self._finalized:
            raise UnsupportedOperation("selection already finalized into a LoadSource")
