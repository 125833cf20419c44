"""
End-to-end tests: bundle file -> corpus -> selection -> lock-step ticks

Three channels of 1000 samples on a 1 s time axis, windowed to [100, 200)
and decimated by 2.
"""

import numpy as np
import pytest
from windloads import LoadCorpus, LoadKind, LoadTag, WindLoading
from windloads.readers import write_parquet

PRESENT = [LoadKind.TOP_END, LoadKind.TRUSS, LoadKind.GIR]


@pytest.fixture
def bundle_path(write_pickle, bundle_payload):
    return write_pickle(bundle_payload(PRESENT))


def test_window_decimate_stream(bundle_path, offsets):
    """Test 50 complete ticks holding rows 100, 102, ..., 198, then None."""
    source = (LoadCorpus.from_pickle(bundle_path)
              .time_window(100.0, 200.0)
              .decimate(2)
              .select()
              .topend()
              .truss()
              .gir()
              .finalize())

    assert source.n_sample == 50

    for k in range(50):
        tick = source.advance()
        assert [tag for tag, _ in tick] == [
            LoadTag.OSS_TOP_END_6F, LoadTag.OSS_TRUSS_6F, LoadTag.OSS_GIR_6F,
        ]
        for (_, sample), kind in zip(tick, PRESENT):
            np.testing.assert_allclose(sample, offsets[kind] + 100 + 2 * k + np.arange(6) / 100)

    assert source.advance() is None


def test_sample_count_limits_ticks(bundle_path):
    """Test with_sample_count truncates every selected stream."""
    source = (LoadCorpus.from_pickle(bundle_path)
              .time_window(100.0, 200.0)
              .decimate(2)
              .with_sample_count(10)
              .select()
              .topend()
              .gir()
              .finalize())

    assert len(list(source)) == 10


def test_same_result_from_config(bundle_path, write_config, monkeypatch):
    """Test the facade reproduces the programmatic pipeline."""
    monkeypatch.delenv('DATA_REPO', raising=False)
    config_path = write_config({
        'corpus': {'path': str(bundle_path), 'reader': 'pickle'},
        'time_window': {'t_min': 100.0, 't_max': 200.0},
        'decimation': 2,
        'selection': ['OSSTopEnd6F', 'OSSTruss6F', 'OSSGIR6F'],
    })

    from_config = list(WindLoading(config_path).source())
    direct = list(LoadCorpus.from_pickle(bundle_path)
                  .time_window(100.0, 200.0)
                  .decimate(2)
                  .select()
                  .select('OSSTopEnd6F')
                  .select('OSSTruss6F')
                  .select('OSSGIR6F')
                  .finalize())

    assert len(from_config) == len(direct) == 50
    for a, b in zip(from_config, direct):
        assert [tag for tag, _ in a] == [tag for tag, _ in b]
        for (_, x), (_, y) in zip(a, b):
            np.testing.assert_array_equal(x, y)


def test_parquet_copy_streams_identically(bundle_path, tmp_path):
    """Test a Parquet export of the bundle yields the same ticks."""
    parquet_path = write_parquet(LoadCorpus.from_pickle(bundle_path).to_frame(),
                                 tmp_path / 'windloads.parquet')

    def ticks(corpus):
        return list(corpus.time_window(100.0, 110.0).select().topend().gir().finalize())

    pickled = ticks(LoadCorpus.from_pickle(bundle_path))
    parquet = ticks(LoadCorpus.from_parquet(parquet_path))

    assert len(pickled) == len(parquet) == 10
    for a, b in zip(pickled, parquet):
        for (_, x), (_, y) in zip(a, b):
            np.testing.assert_array_equal(x, y)
