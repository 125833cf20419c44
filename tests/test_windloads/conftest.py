"""Shared fixtures for windloads tests."""

import pickle

import duckdb
import numpy as np
import pytest
import yaml

from windloads.core.corpus import LoadCorpus
from windloads.core.types import LoadKind


def channel_samples(n, width=6, offset=0.0):
    """Samples where row i, column j holds offset + i + j / 100."""
    return offset + np.arange(n, dtype=float)[:, None] + np.arange(width)[None, :] / 100


# Distinct offsets so every channel can be recognized from its first value
OFFSETS = {kind: 1000.0 * (k + 1) for k, kind in enumerate(LoadKind)}


@pytest.fixture
def make_samples():
    """Factory for recognizable (n, width) sample arrays."""
    return channel_samples


@pytest.fixture
def offsets():
    """LoadKind -> first value of its test samples."""
    return dict(OFFSETS)


@pytest.fixture
def time_axis():
    """1000 samples on a uniform 1 s time axis."""
    return np.arange(1000, dtype=float)


@pytest.fixture
def make_corpus():
    """Factory for corpora with the given channels on a uniform 1 s axis."""
    def _make(kinds, n=1000, width=6):
        channels = {kind: channel_samples(n, width, OFFSETS[kind]) for kind in kinds}
        return LoadCorpus(channels, np.arange(n, dtype=float))
    return _make


@pytest.fixture
def three_channel_corpus(make_corpus):
    """Top-end, truss and GIR loads, 1000 samples."""
    return make_corpus([LoadKind.TOP_END, LoadKind.TRUSS, LoadKind.GIR])


@pytest.fixture
def full_corpus(make_corpus):
    """All eight channels, 100 samples."""
    return make_corpus(list(LoadKind), n=100)


@pytest.fixture
def write_pickle(tmp_path):
    """Factory writing a payload to a pickle file and returning its path."""
    def _write(payload, name='windloads.pkl'):
        path = tmp_path / name
        with open(path, 'wb') as f:
            pickle.dump(payload, f)
        return path
    return _write


@pytest.fixture
def bundle_payload():
    """Factory for pickle payloads in the list-of-variants layout."""
    def _payload(kinds, n=1000, width=6):
        outputs = []
        for kind in LoadKind:
            if kind in kinds:
                outputs.append({kind.value: channel_samples(n, width, OFFSETS[kind]).tolist()})
            else:
                outputs.append(None)
        return {'outputs': outputs, 'time': [float(t) for t in range(n)]}
    return _payload


@pytest.fixture
def write_config(tmp_path):
    """Factory writing settings.yaml / tags.yaml and returning the config dir."""
    def _write(settings=None, tags=None):
        config_path = tmp_path / 'config'
        config_path.mkdir(exist_ok=True)
        if settings is not None:
            with open(config_path / 'settings.yaml', 'w') as f:
                yaml.dump(settings, f)
        if tags is not None:
            with open(config_path / 'tags.yaml', 'w') as f:
                yaml.dump(tags, f)
        return str(config_path)
    return _write


@pytest.fixture
def write_parquet_frame(tmp_path):
    """Factory writing any DataFrame to a Parquet file with DuckDB."""
    def _write(df, name='windloads.parquet'):
        path = tmp_path / name
        con = duckdb.connect()
        try:
            # DuckDB cannot register a frame with a negative-step index or
            # strided columns; the index is not written to Parquet, so a
            # contiguous copy with a fresh index is lossless.
            con.register('loads_frame', df.reset_index(drop=True).copy())
            con.execute(f"COPY loads_frame TO '{path}' (FORMAT PARQUET)")
        finally:
            con.close()
        return path
    return _write
