"""Tests for :mod:`cumulus.util`."""
