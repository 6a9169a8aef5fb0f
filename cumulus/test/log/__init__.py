"""Tests for :mod:`cumulus.log`."""
