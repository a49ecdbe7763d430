"""Shared pytest configuration."""


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: end-to-end tests across fixture loading and the CLI")
