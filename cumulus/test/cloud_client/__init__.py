"""Tests for :mod:`cumulus.cloud_client`."""
