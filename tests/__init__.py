"""Tests for the Neon developer kit.

Unit tests run against in-memory fakes (``tests.fakes``) and
``httpx.MockTransport``; nothing here needs a live database or the Neon API.
"""
