"""Unit tests for :mod:`svc_mox`."""
