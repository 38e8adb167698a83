"""Unit tests for observation matrices with missing values."""

import numpy as np
import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from masked_kalman.observations import (
    as_observation_matrix, as_observation_column, observed_indices, from_series, missing_fraction,
)
from masked_kalman.filters.errors import DimensionMismatchError


class TestAsObservationMatrix:
    """Tests for observation parsing."""

    def test_none_and_nan_are_missing(self):
        """None and NaN both become masked entries."""
        Y = as_observation_matrix([[1.0, None, 3.0], [np.nan, 5.0, 6.0]])

        np.testing.assert_array_equal(np.ma.getmaskarray(Y), [[False, True, False], [True, False, False]])
        np.testing.assert_array_equal(Y.compressed(), [1.0, 3.0, 5.0, 6.0])

    def test_masked_data_is_zero_filled(self):
        """No NaN survives under the mask."""
        Y = as_observation_matrix(np.array([[np.nan, 2.0]]))

        assert np.all(np.isfinite(Y.data))
        assert Y.data[0, 0] == 0.0

    def test_masked_array_passthrough(self):
        """Masked arrays keep their mask, garbage under the mask is allowed."""
        raw = np.ma.masked_array([[np.inf, 1.0], [2.0, 3.0]], mask=[[True, False], [False, False]])

        Y = as_observation_matrix(raw)

        np.testing.assert_array_equal(np.ma.getmaskarray(Y), np.ma.getmaskarray(raw))
        assert Y.dtype == float

    def test_does_not_alias_input(self):
        """Changing the returned mask leaves the caller's array alone."""
        raw = np.ma.masked_array([[1.0, 2.0]], mask=[[False, True]])

        Y = as_observation_matrix(raw)
        Y[0, 0] = np.ma.masked

        assert not raw.mask[0, 0]

    def test_unmasked_nan_in_masked_array_rejected(self):
        """A NaN not covered by the mask is an error, not a silent missing value."""
        raw = np.ma.masked_array([[np.nan, 1.0]], mask=[[False, False]])

        with pytest.raises(ValueError, match="finite"):
            as_observation_matrix(raw)

    def test_inf_rejected(self):
        """Infinite observations are errors."""
        with pytest.raises(ValueError, match="infinite"):
            as_observation_matrix([[1.0, np.inf]])

    def test_shape_checks(self):
        """Non-2-D input and wrong row counts are dimension errors."""
        with pytest.raises(DimensionMismatchError):
            as_observation_matrix([1.0, 2.0])
        with pytest.raises(DimensionMismatchError):
            as_observation_matrix([[1.0, 2.0]], n_entities=2)


class TestAsObservationColumn:
    """Tests for single-column parsing."""

    def test_nan_and_none_are_missing(self):
        """Plain columns get the same missing-value rules as matrices."""
        y = as_observation_column(np.array([1.0, np.nan, 3.0]))

        np.testing.assert_array_equal(np.ma.getmaskarray(y), [False, True, False])
        assert np.all(np.isfinite(y.data))
        np.testing.assert_array_equal(np.ma.getmaskarray(as_observation_column([None, 2.0])), [True, False])

    def test_checks(self):
        """Unmasked NaN, 2-D input and wrong lengths are rejected."""
        with pytest.raises(ValueError, match="finite"):
            as_observation_column(np.ma.masked_array([np.nan, 1.0], mask=False))
        with pytest.raises(DimensionMismatchError):
            as_observation_column(np.ones((2, 1)))
        with pytest.raises(DimensionMismatchError):
            as_observation_column([1.0, 2.0], n_entities=3)


class TestObservedIndices:
    """Tests for observed_indices."""

    def test_ordered_subset(self):
        """Indices are the unmasked positions, in order."""
        y = np.ma.masked_array([1.0, 2.0, 3.0, 4.0], mask=[True, False, True, False])

        np.testing.assert_array_equal(observed_indices(y), [1, 3])

    def test_empty_and_full(self):
        """All-masked gives an empty set, unmasked gives every index."""
        assert observed_indices(np.ma.masked_all(3)).size == 0
        np.testing.assert_array_equal(observed_indices(np.ma.masked_array([1.0, 2.0])), [0, 1])


class TestFromSeries:
    """Tests for building observation matrices from entity series."""

    def test_rows_follow_entities(self):
        """Rows follow the requested entity order."""
        series = {'north': [1.0, None], 'south': [3.0, 4.0]}

        entities, Y = from_series(series, entities=['south', 'north'])

        assert entities == ('south', 'north')
        np.testing.assert_array_equal(Y.data, [[3.0, 4.0], [1.0, 0.0]])
        assert Y.mask[1, 1]

    def test_default_order(self):
        """Without entities, the mapping order is used."""
        entities, Y = from_series({'a': [1.0], 'b': [2.0]})

        assert entities == ('a', 'b')
        assert Y.shape == (2, 1)

    def test_unequal_lengths(self):
        """Series of different lengths cannot form a matrix."""
        with pytest.raises(DimensionMismatchError):
            from_series({'a': [1.0, 2.0], 'b': [1.0]})

    def test_unknown_entity(self):
        """Requesting an entity with no series is a KeyError."""
        with pytest.raises(KeyError):
            from_series({'a': [1.0]}, entities=['a', 'b'])


class TestMissingFraction:
    """Tests for missing_fraction."""

    def test_per_entity(self):
        """Fraction of missing columns per row."""
        frac = missing_fraction([[1.0, None, None, 4.0], [1.0, 2.0, 3.0, 4.0]])

        np.testing.assert_allclose(frac, [0.5, 0.0])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
