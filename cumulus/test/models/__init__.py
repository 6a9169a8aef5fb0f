"""Tests for :mod:`cumulus.models`."""
