"""
Observation matrices with explicit missing values.

An observation matrix has one row per entity and one column per time step.
Missing entries are masked (numpy masked arrays), never encoded as a special
float, and the data underneath a mask is zero-filled.
"""
import numpy as np

from .filters.errors import DimensionMismatchError


def as_observation_matrix(Y, n_entities=None):
    """
    Convert observations to a float masked array of shape [N, T].

    Parameters
    ----------
    Y : MaskedArray, ndarray or nested sequence
        Observations, rows = entities, columns = time steps. Masked entries,
        None and NaN are treated as missing.
    n_entities : int, optional
        Expected number of rows.

    Returns
    -------
    MaskedArray [N, T]
        Observation matrix with a full boolean mask.

    Raises
    ------
    DimensionMismatchError
        If Y is not 2-D or has the wrong number of rows.
    ValueError
        If an observed (unmasked) entry is not finite.
    """
    raw = Y if isinstance(Y, np.ma.MaskedArray) else np.array(Y, dtype=object)
    if raw.ndim != 2:
        raise DimensionMismatchError(f"observation matrix must be 2-D [entities, time], got shape {raw.shape}")

    if isinstance(raw, np.ma.MaskedArray):
        mask = np.ma.getmaskarray(raw)
        data = np.asarray(raw.data, dtype=float)
        if not np.all(np.isfinite(data[~mask])):
            raise ValueError("observed entries must be finite; mask missing values instead")
    else:
        mask = np.vectorize(lambda v: v is None, otypes=[bool])(raw)
        data = np.where(mask, 0.0, raw).astype(float)
        mask = mask | np.isnan(data)
        if np.any(np.isinf(data)):
            raise ValueError("observations contain infinite values")

    if n_entities is not None and data.shape[0] != n_entities:
        raise DimensionMismatchError(
            f"observation matrix has {data.shape[0]} rows, expected {n_entities} entities")

    return np.ma.MaskedArray(np.where(mask, 0.0, data), mask=mask.copy())


def as_observation_column(y, n_entities=None):
    """
    Convert one observation column to a float masked array of shape [N].

    Missing values follow the same rules as `as_observation_matrix`: masked
    entries, None and NaN are missing, an unmasked non-finite value is an error.
    """
    if np.ndim(y) != 1:
        raise DimensionMismatchError(f"observation column must be 1-D, got shape {np.shape(y)}")
    if isinstance(y, np.ma.MaskedArray):
        column = np.ma.reshape(y, (-1, 1))
    else:
        column = np.reshape(np.array(y, dtype=object), (-1, 1))
    return as_observation_matrix(column, n_entities=n_entities)[:, 0]


def observed_indices(y):
    """Ordered indices of the observed entries of one observation column."""
    return np.flatnonzero(~np.ma.getmaskarray(y))


def from_series(mapping, entities=None):
    """
    Build an observation matrix from an entity -> time series mapping.

    Parameters
    ----------
    mapping : dict
        Entity name -> sequence of values (None or NaN for missing)
    entities : list, optional
        Row order. Defaults to the mapping's own order.

    Returns
    -------
    entities : tuple
        Entity names, one per row
    Y : MaskedArray [N, T]
        Observation matrix
    """
    entities = tuple(mapping) if entities is None else tuple(entities)
    unknown = [e for e in entities if e not in mapping]
    if unknown:
        raise KeyError(f"no series for entities: {unknown}")

    lengths = {len(mapping[e]) for e in entities}
    if len(lengths) > 1:
        raise DimensionMismatchError(f"series lengths differ: {sorted(lengths)}")

    rows = [list(mapping[e]) for e in entities]
    if not rows:
        return entities, np.ma.MaskedArray(np.zeros((0, 0)), mask=np.zeros((0, 0), bool))
    return entities, as_observation_matrix(rows)


def missing_fraction(Y):
    """Fraction of missing time steps per entity."""
    Y = as_observation_matrix(Y)
    if Y.shape[1] == 0:
        return np.zeros(Y.shape[0])
    return np.ma.getmaskarray(Y).mean(axis=1)
