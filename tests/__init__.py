"""
Test suite for the portal automation worker.

Browser-facing code is exercised against in-process fakes (see conftest.py);
no test launches a real browser or calls an external API.
"""
