"""Tests for :mod:`cumulus.compute`."""
