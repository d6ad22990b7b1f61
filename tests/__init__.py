"""
Test suite for famalbum.

- Unit tests for models, services, configuration and the admin tasks
- Integration tests for complete collection lifecycles
"""
