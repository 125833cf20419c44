"""
Parquet reader for windloads.

This module reads (and writes) wind loads bundles stored as long-format
Parquet files, using DuckDB for querying and pandas for pivoting.

Layout (one row per time sample, channel and degree of freedom):

    | sample | time  | channel       | dof | value |
    |--------|-------|---------------|-----|-------|
    | 0      | 0.000 | OSS_GIR_6F    | 0   | 12.5  |
    | 0      | 0.000 | OSS_GIR_6F    | 1   | -3.1  |
    | ...    | ...   | ...           | ... | ...   |

The ``sample`` column is optional. Without it rows are keyed by time, which
then must be strictly increasing; with it repeated timestamps are kept.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Union

import duckdb
import numpy as np
import pandas as pd

from .base import BaseReader, Bundle
from ..core.errors import DecodeFailure, SourceUnavailable
from ..core.types import LoadKind

logger = logging.getLogger(__name__)

COLUMNS = ('time', 'channel', 'dof', 'value')
SAMPLE = 'sample'


def _quote(path: Path) -> str:
    """Return a single-quoted SQL string literal for a file path."""
    return "'" + str(path).replace("'", "''") + "'"


class ParquetReader(BaseReader):
    """Reader for long-format Parquet bundles using DuckDB.

    Example:
        >>> reader = ParquetReader()
        >>> bundle = reader.read('windloads.parquet')
        >>> bundle.time[:3]
        array([0.   , 0.001, 0.002])
    """

    def read(self, path: Union[str, Path]) -> Bundle:
        """Read a Parquet bundle.

        Args:
            path: Path to the Parquet file

        Returns:
            Bundle with one entry per known channel (None when missing)

        Raises:
            SourceUnavailable: If the file does not exist
            DecodeFailure: If the file cannot be queried or has the wrong layout
        """
        path = Path(path)
        if not path.is_file():
            raise SourceUnavailable(f"wind loads data file not found: {path}")

        query = f"""
            SELECT *
            FROM read_parquet({_quote(path)})
        """
        try:
            df = duckdb.query(query).to_df()
        except duckdb.Error as e:
            raise DecodeFailure(f"cannot read wind loads data file {path}: {e}") from e

        bundle = self.decode(df, source=str(path))
        logger.debug(f"Decoded {path} ({len(bundle.time)} time samples)")
        return bundle

    def decode(self, df: pd.DataFrame, source: Optional[str] = None) -> Bundle:
        """Pivot a long-format DataFrame into a Bundle.

        Args:
            df: DataFrame with columns time, channel, dof, value and an
                optional sample index
            source: Origin of the data, for error messages

        Returns:
            Bundle with one entry per known channel (None when missing)

        Raises:
            DecodeFailure: If columns are missing, a channel is unknown, a
                (sample or time, dof) cell is missing or channels disagree on time
        """
        where = source or 'bundle'
        missing = set(COLUMNS) - set(df.columns)
        if missing:
            raise DecodeFailure(
                f"{where}: missing columns {sorted(missing)}. "
                f"Available: {sorted(df.columns)}"
            )

        key = SAMPLE if SAMPLE in df.columns else 'time'
        channels: Dict[str, Optional[np.ndarray]] = {name: None for name in LoadKind.bundle_names()}
        time: Optional[np.ndarray] = None

        for name, group in df.groupby('channel', sort=False):
            if LoadKind.from_name(name) is None:
                raise DecodeFailure(
                    f"{where}: unknown channel '{name}'. "
                    f"Available channels: {LoadKind.bundle_names()}"
                )
            try:
                wide = group.pivot(index=key, columns='dof', values='value').sort_index()
            except ValueError as e:
                raise DecodeFailure(f"{where}: duplicated ({key}, dof) rows in '{name}'") from e
            if wide.isna().to_numpy().any():
                raise DecodeFailure(f"{where}: missing values in '{name}'")

            if key == SAMPLE:
                sample_times = group.groupby(SAMPLE)['time']
                if (sample_times.nunique() > 1).any():
                    raise DecodeFailure(f"{where}: several times for one sample in '{name}'")
                channel_time = sample_times.first().sort_index().to_numpy(dtype=np.float64)
            else:
                channel_time = wide.index.to_numpy(dtype=np.float64)
            if time is None:
                time = channel_time
            elif not np.array_equal(time, channel_time):
                raise DecodeFailure(f"{where}: '{name}' does not share the bundle time axis")

            channels[name] = wide.sort_index(axis=1).to_numpy(dtype=np.float64)

        if time is None:
            time = np.empty(0, dtype=np.float64)
        return Bundle(channels=channels, time=time, source=source)


def write_parquet(df: pd.DataFrame, path: Union[str, Path]) -> Path:
    """Write a long-format DataFrame to a Parquet bundle with DuckDB.

    Args:
        df: DataFrame with columns time, channel, dof, value (and sample,
            kept when present)
        path: Destination file

    Returns:
        Path of the written file
    """
    path = Path(path)
    con = duckdb.connect()
    try:
        columns = ([SAMPLE] if SAMPLE in df.columns else []) + list(COLUMNS)
        con.register('loads', df.loc[:, columns])
        con.execute(f"COPY loads TO {_quote(path)} (FORMAT PARQUET)")
    finally:
        con.close()
    return path
