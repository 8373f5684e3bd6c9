"""JSON-safe conversion of pandas / numpy objects."""

from datetime import date, datetime
from typing import Any

import numpy as np
import pandas as pd


def _clean_nan_values(obj):
    """Recursively convert NaN values to None for JSON serialization."""
    if isinstance(obj, dict):
        return {k: _clean_nan_values(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_clean_nan_values(item) for item in obj]
    elif isinstance(obj, float) and obj != obj:  # NaN check
        return None
    elif hasattr(obj, 'item'):  # numpy scalar
        val = obj.item()
        if isinstance(val, float) and val != val:
            return None
        return val
    else:
        return obj


def _index_to_str(index: pd.Index) -> pd.Index:
    if isinstance(index, pd.PeriodIndex):
        return index.astype(str)
    if hasattr(index, 'strftime'):
        return index.strftime('%Y-%m-%d')
    return index.map(str)


def make_json_safe(obj: Any) -> Any:
    """
    Convert pandas objects, numpy scalars and timestamps to plain Python.

    DataFrames become ``{column: {index: value}}``; date indexes are rendered
    as ``YYYY-MM-DD`` strings and NaN becomes ``None``.
    """
    if isinstance(obj, pd.DataFrame):
        df_copy = obj.copy()
        df_copy.index = _index_to_str(df_copy.index)
        df_copy.columns = [str(c) for c in df_copy.columns]
        return _clean_nan_values(df_copy.to_dict())

    elif isinstance(obj, pd.Series):
        series_copy = obj.copy()
        series_copy.index = _index_to_str(series_copy.index)
        return _clean_nan_values(series_copy.to_dict())

    elif isinstance(obj, (pd.Timestamp, datetime, date)):
        return obj.isoformat()

    elif isinstance(obj, pd.Period):
        return str(obj)

    elif isinstance(obj, (np.integer, np.floating, np.bool_)):
        return _clean_nan_values(obj)

    elif isinstance(obj, float):
        return _clean_nan_values(obj)

    elif isinstance(obj, dict):
        return {str(k): make_json_safe(v) for k, v in obj.items()}

    elif isinstance(obj, (list, tuple)):
        return [make_json_safe(item) for item in obj]

    return obj
