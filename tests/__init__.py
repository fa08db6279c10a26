"""Test package; shared fakes live in tests.helpers."""
