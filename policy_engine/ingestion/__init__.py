"""
Fixture Ingestion Package.

This package loads users, organization memberships and wire-shaped policy
responses from YAML or JSON files and seeds the engine with them.
"""

from .fixture_loader import Fixture, UserFixture, build_policy_service, load_fixture, seed_services

__all__ = [
    "Fixture",
    "UserFixture",
    "load_fixture",
    "seed_services",
    "build_policy_service",
]
