"""Tests for :mod:`cumulus.codec`."""
