"""Tests for LoadCorpus"""

import math

import numpy as np
import pandas as pd
import pytest
import xarray as xr
from windloads.core.channel import LoadChannel
from windloads.core.corpus import LoadCorpus
from windloads.core.errors import (
    DecodeFailure,
    EmptyCorpus,
    InvalidSampleCount,
    MissingChannel,
    SourceUnavailable,
)
from windloads.core.types import LoadKind

PRESENT = [LoadKind.TOP_END, LoadKind.TRUSS, LoadKind.GIR]


class TestLoadCorpusInit:
    """Test LoadCorpus construction and structural validation."""

    def test_absent_channels_are_none(self, three_channel_corpus):
        """Test every kind is a key, missing ones map to None."""
        channels = three_channel_corpus.channels

        assert list(channels) == list(LoadKind)
        assert channels[LoadKind.CRING] is None
        assert isinstance(channels[LoadKind.GIR], LoadChannel)
        assert three_channel_corpus.present() == PRESENT

    def test_bundle_names_and_none_values(self, make_samples, time_axis):
        """Test channels keyed by bundle name, with explicit None entries."""
        corpus = LoadCorpus(
            {'OSS_GIR_6F': make_samples(1000), 'OSS_CRING_6F': None},
            time_axis,
        )

        assert 'OSS_GIR_6F' in corpus
        assert LoadKind.GIR in corpus
        assert LoadKind.CRING not in corpus
        assert 'not a channel' not in corpus
        assert len(corpus) == 1000

    def test_unknown_channel_raises(self, make_samples, time_axis):
        """Test an unknown channel name is a decode failure."""
        with pytest.raises(DecodeFailure, match="unknown channel"):
            LoadCorpus({'OSS_Dome_6F': make_samples(1000)}, time_axis)

    def test_length_mismatch_raises(self, make_samples, time_axis):
        """Test channels must match the time axis length."""
        with pytest.raises(DecodeFailure, match="time axis has 1000"):
            LoadCorpus({LoadKind.GIR: make_samples(999)}, time_axis)

    def test_decreasing_time_raises(self, make_samples):
        """Test the time axis must be non-decreasing."""
        with pytest.raises(DecodeFailure, match="non-decreasing"):
            LoadCorpus({LoadKind.GIR: make_samples(3)}, [0.0, 2.0, 1.0])

    def test_repeated_timestamps_allowed(self, make_samples):
        """Test equal consecutive timestamps are accepted."""
        corpus = LoadCorpus({LoadKind.GIR: make_samples(3)}, [0.0, 1.0, 1.0])
        assert len(corpus) == 3

    def test_malformed_channel_raises(self, time_axis):
        """Test channel validation errors surface as DecodeFailure."""
        with pytest.raises(DecodeFailure, match="multiple of 6"):
            LoadCorpus({LoadKind.GIR: np.zeros((1000, 4))}, time_axis)

    def test_channel_under_wrong_key_raises(self, make_samples, time_axis):
        """Test a LoadChannel must be stored under its own kind."""
        channel = LoadChannel(LoadKind.GIR, make_samples(1000))

        with pytest.raises(DecodeFailure, match="stored under"):
            LoadCorpus({LoadKind.TRUSS: channel}, time_axis)

    def test_channel_is_copied(self, make_samples, time_axis):
        """Test later changes to a passed-in LoadChannel do not reach the corpus."""
        channel = LoadChannel(LoadKind.GIR, make_samples(1000))
        corpus = LoadCorpus({LoadKind.GIR: channel}, time_axis)

        channel.decimate(2)

        assert corpus[LoadKind.GIR] is not channel
        assert len(corpus[LoadKind.GIR]) == len(corpus) == 1000

    def test_getitem_missing_raises(self, three_channel_corpus):
        """Test indexing an absent channel raises MissingChannel."""
        with pytest.raises(MissingChannel):
            three_channel_corpus[LoadKind.CRING]

    def test_repr(self, three_channel_corpus):
        """Test string representation."""
        assert repr(three_channel_corpus) == (
            "LoadCorpus(samples=1000, channels=['TOP_END', 'TRUSS', 'GIR'], n_sample=None)"
        )


class TestTimeWindow:
    """Test LoadCorpus.time_window()."""

    @pytest.mark.parametrize('t_min, t_max', [
        (100.0, 200.0),
        (0.0, 1000.0),
        (99.5, 100.5),
        (-50.0, 10.0),
        (990.0, 5000.0),
        (250.0, 250.0),
    ])
    def test_lengths_match_time_axis_range(self, three_channel_corpus, time_axis, t_min, t_max):
        """Test every channel keeps the samples in [first >= t_min, first >= t_max)."""
        hits_min = np.flatnonzero(time_axis >= t_min)
        hits_max = np.flatnonzero(time_axis >= t_max)
        min_index = hits_min[0] if hits_min.size else 0
        max_index = hits_max[0] if hits_max.size else len(time_axis)
        expected = max(0, max_index - min_index)

        three_channel_corpus.time_window(t_min, t_max)

        lengths = {len(three_channel_corpus[kind]) for kind in PRESENT}
        assert lengths == {expected}
        assert len(three_channel_corpus) == expected

    def test_window_content(self, three_channel_corpus, offsets):
        """Test windowed samples start at the first time >= t_min."""
        three_channel_corpus.time_window(100.0, 200.0)

        truss = three_channel_corpus[LoadKind.TRUSS].samples
        assert truss[0, 0] == offsets[LoadKind.TRUSS] + 100
        assert truss[-1, 0] == offsets[LoadKind.TRUSS] + 199
        assert three_channel_corpus.time[0] == 100.0
        assert three_channel_corpus.time[-1] == 199.0

    def test_inverted_window_is_empty(self, three_channel_corpus):
        """Test t_max < t_min leaves empty channels."""
        three_channel_corpus.time_window(300.0, 200.0)

        assert all(len(three_channel_corpus[kind]) == 0 for kind in PRESENT)
        assert len(three_channel_corpus) == 0

    def test_t_min_past_end_defaults_to_start(self, three_channel_corpus):
        """Test a lower bound past the axis falls back to index 0."""
        three_channel_corpus.time_window(5000.0, 6000.0)
        assert len(three_channel_corpus) == 1000

    def test_full_range_round_trip(self, three_channel_corpus, make_samples, offsets, time_axis):
        """Test windowing to [time[0], time[-1] + eps) reproduces the data."""
        three_channel_corpus.time_window(time_axis[0], time_axis[-1] + 1e-9)

        for kind in PRESENT:
            np.testing.assert_array_equal(
                three_channel_corpus[kind].samples,
                make_samples(1000, offset=offsets[kind]),
            )
        np.testing.assert_array_equal(three_channel_corpus.time, time_axis)

    def test_successive_windows_stay_aligned(self, three_channel_corpus, offsets):
        """Test a second window is resolved against the windowed time axis."""
        three_channel_corpus.time_window(100.0, 500.0).time_window(200.0, 300.0)

        gir = three_channel_corpus[LoadKind.GIR].samples
        assert len(gir) == 100
        assert gir[0, 0] == offsets[LoadKind.GIR] + 200

    def test_returns_self(self, three_channel_corpus):
        """Test chaining."""
        assert three_channel_corpus.time_window(0.0, 10.0) is three_channel_corpus


class TestDecimate:
    """Test LoadCorpus.decimate()."""

    @pytest.mark.parametrize('rate', [1, 2, 3, 7, 1000, 1001])
    def test_every_channel_has_ceil_length(self, three_channel_corpus, rate):
        """Test decimation length on all channels and on the time axis."""
        three_channel_corpus.decimate(rate)

        expected = math.ceil(1000 / rate)
        assert {len(three_channel_corpus[kind]) for kind in PRESENT} == {expected}
        assert len(three_channel_corpus) == expected

    def test_time_axis_follows(self, three_channel_corpus):
        """Test the time axis is decimated with the channels."""
        three_channel_corpus.decimate(10)
        np.testing.assert_array_equal(three_channel_corpus.time[:3], [0.0, 10.0, 20.0])

    def test_zero_rate_raises(self, three_channel_corpus):
        """Test a zero rate is rejected before touching the data."""
        with pytest.raises(ValueError, match="positive integer"):
            three_channel_corpus.decimate(0)
        assert len(three_channel_corpus[LoadKind.GIR]) == 1000


class TestSampleCount:
    """Test with_sample_count() and n_sample inference."""

    @pytest.mark.parametrize('n', [0, -1, 2.5, True])
    def test_invalid_values_raise(self, three_channel_corpus, n):
        """Test non-positive or non-integer counts raise InvalidSampleCount."""
        with pytest.raises(InvalidSampleCount):
            three_channel_corpus.with_sample_count(n)

    def test_too_large_after_transforms_raises(self, three_channel_corpus):
        """Test the bound is the channel length after windowing and decimation."""
        three_channel_corpus.time_window(100.0, 200.0).decimate(2)

        with pytest.raises(InvalidSampleCount, match=r"\(50\)"):
            three_channel_corpus.with_sample_count(51)

        assert three_channel_corpus.with_sample_count(50).n_sample == 50

    def test_bound_is_shortest_channel(self, make_samples):
        """Test the override cannot exceed any present channel."""
        corpus = LoadCorpus({LoadKind.GIR: make_samples(10)}, np.arange(10.0))
        corpus[LoadKind.GIR].window(0, 4)

        with pytest.raises(InvalidSampleCount):
            corpus.with_sample_count(5)
        assert corpus.with_sample_count(4).sample_count_override == 4

    def test_empty_corpus_raises(self, time_axis):
        """Test no channel -> EmptyCorpus for both setting and inferring n."""
        corpus = LoadCorpus({}, time_axis)

        with pytest.raises(EmptyCorpus):
            corpus.with_sample_count(10)
        with pytest.raises(EmptyCorpus):
            corpus.n_sample

    def test_inferred_from_first_present_channel(self, three_channel_corpus):
        """Test n_sample defaults to the first present channel length."""
        three_channel_corpus[LoadKind.TOP_END].window(0, 30)
        assert three_channel_corpus.n_sample == 30

    def test_override_wins(self, three_channel_corpus):
        """Test the explicit count replaces the inferred one."""
        assert three_channel_corpus.with_sample_count(12).n_sample == 12
        # Channels are not truncated by the override itself
        assert len(three_channel_corpus[LoadKind.GIR]) == 1000

    def test_window_below_count_raises(self, three_channel_corpus):
        """Test a window shorter than the set count is rejected, data untouched."""
        three_channel_corpus.with_sample_count(50)

        with pytest.raises(InvalidSampleCount, match=r"\(50\)"):
            three_channel_corpus.time_window(0.0, 10.0)

        assert len(three_channel_corpus) == 1000
        assert len(three_channel_corpus[LoadKind.GIR]) == 1000

    def test_decimation_below_count_raises(self, three_channel_corpus):
        """Test decimation leaving fewer samples than the set count is rejected."""
        three_channel_corpus.with_sample_count(600)

        with pytest.raises(InvalidSampleCount):
            three_channel_corpus.decimate(2)

        assert len(three_channel_corpus[LoadKind.TRUSS]) == 1000

    def test_transforms_within_count(self, three_channel_corpus):
        """Test transforms keeping enough samples leave the count in place."""
        three_channel_corpus.with_sample_count(50).time_window(100.0, 200.0).decimate(2)

        assert len(three_channel_corpus) == 50
        assert three_channel_corpus.n_sample == 50


class TestLookup:
    """Test LoadCorpus.lookup()."""

    def test_missing_channel_raises(self, three_channel_corpus):
        """Test looking up an absent channel raises MissingChannel."""
        with pytest.raises(MissingChannel, match="OSS_CRING_6F"):
            three_channel_corpus.lookup(LoadKind.CRING)

    def test_lookup_is_a_copy(self, three_channel_corpus, offsets):
        """Test returned samples do not alias the corpus."""
        samples = three_channel_corpus.lookup(LoadKind.GIR, 5)
        samples[:] = 0.0

        assert samples.shape == (5, 6)
        assert three_channel_corpus[LoadKind.GIR].samples[0, 0] == offsets[LoadKind.GIR]


class TestExport:
    """Test DataFrame and Dataset export."""

    def test_to_dataset(self, three_channel_corpus):
        """Test one Dataset variable per present channel."""
        ds = three_channel_corpus.time_window(0.0, 10.0).to_dataset()

        assert isinstance(ds, xr.Dataset)
        assert set(ds.data_vars) == {'OSS_TopEnd_6F', 'OSS_Truss_6F', 'OSS_GIR_6F'}
        assert ds['OSS_GIR_6F'].dims == ('time', 'OSS_GIR_6F_dof')
        assert ds['OSS_GIR_6F'].shape == (10, 6)
        assert list(ds['OSS_GIR_6F_dof'].values) == ['Fx', 'Fy', 'Fz', 'Mx', 'My', 'Mz']
        np.testing.assert_array_equal(ds['time'].values, np.arange(10.0))

    def test_to_frame_long_format(self, make_corpus, offsets):
        """Test long-format export, one row per (time, channel, dof)."""
        corpus = make_corpus([LoadKind.GIR], n=3)

        df = corpus.to_frame()

        assert isinstance(df, pd.DataFrame)
        assert list(df.columns) == ['sample', 'time', 'channel', 'dof', 'value']
        assert len(df) == 3 * 6
        row = df[(df['time'] == 2.0) & (df['dof'] == 1)].iloc[0]
        assert row['channel'] == 'OSS_GIR_6F'
        assert row['value'] == pytest.approx(offsets[LoadKind.GIR] + 2 + 0.01)


class TestFromFile:
    """Test reader dispatch."""

    def test_unknown_suffix_raises(self, tmp_path):
        """Test files without a matching reader raise DecodeFailure."""
        path = tmp_path / 'windloads.csv'
        path.write_text('time,value\n')

        with pytest.raises(DecodeFailure, match="no reader"):
            LoadCorpus.from_file(path)

    def test_missing_file_raises(self, tmp_path):
        """Test a missing bundle raises SourceUnavailable."""
        with pytest.raises(SourceUnavailable):
            LoadCorpus.from_file(tmp_path / 'missing.pkl')

    def test_pickle_by_suffix(self, write_pickle, bundle_payload):
        """Test .pkl files are read with the pickle reader."""
        path = write_pickle(bundle_payload(PRESENT, n=20))

        corpus = LoadCorpus.from_file(path)

        assert corpus.present() == PRESENT
        assert len(corpus) == 20
