"""
Pytest fixtures for the IntegrationDownload test suite.

- http_mocking: fake metadata, manifest, and storage services over
  ``httpx.MockTransport``
"""
