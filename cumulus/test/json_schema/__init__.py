"""Tests for :mod:`cumulus.json_schema`."""
