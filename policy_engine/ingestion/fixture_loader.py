"""
Fixture Loader for the Policy Engine.

Reads YAML or JSON files describing users, their organization memberships
and the wire-shaped policy list responses received for them, and seeds the
engine's collaborators with that data.

Example fixture:

    active_user: user-1
    users:
      user-1:
        memberships:
          - organizationId: org-1
            usePolicies: true
            status: Confirmed
            type: User
        policies:
          Data:
            - Id: policy-1
              OrganizationId: org-1
              Type: MasterPassword
              Enabled: true
              Data: {minLength: 12}
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

from ..engine.evaluators import map_policies_from_token
from ..engine.organization_service import OrganizationService
from ..engine.policy_service import PolicyService
from ..engine.state_provider import AccountService
from ..errors import FixtureLoadError
from ..models import OrganizationMembership

logger = logging.getLogger(__name__)


class UserFixture(BaseModel):
    """Memberships and raw policy response for one user identity."""
    memberships: List[OrganizationMembership] = Field(default_factory=list)
    policies: Optional[Dict[str, Any]] = Field(
        None, description="Policy list response body as received from the server"
    )


class Fixture(BaseModel):
    """A set of users and the user to activate."""
    active_user: Optional[str] = None
    users: Dict[str, UserFixture] = Field(default_factory=dict)


def load_fixture(path: Union[str, Path]) -> Fixture:
    """
    Load a fixture file.

    Args:
        path: Path to a .json, .yaml or .yml file

    Returns:
        Validated Fixture

    Raises:
        FixtureLoadError: If the file is missing, unparsable or invalid
    """
    path = Path(path)
    if not path.exists():
        raise FixtureLoadError(str(path), "file not found")

    try:
        with open(path, encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise FixtureLoadError(str(path), str(e)) from e

    try:
        fixture = Fixture.model_validate(data or {})
    except ValidationError as e:
        raise FixtureLoadError(str(path), str(e)) from e

    logger.info(f"Loaded fixture from {path} with {len(fixture.users)} users")
    return fixture


def seed_services(
    fixture: Fixture,
    account_service: AccountService,
    organization_service: OrganizationService,
    policy_service: PolicyService,
) -> None:
    """Write the fixture's memberships and decoded policies into the services."""
    for user_id, user in fixture.users.items():
        organization_service.replace(user_id, user.memberships)

        records = map_policies_from_token(user.policies)
        policy_service.replace(records, user_id)

    if fixture.active_user is not None:
        account_service.switch_account(fixture.active_user)


def build_policy_service(fixture: Fixture, active_user_id: Optional[str] = None) -> PolicyService:
    """
    Build an in-memory PolicyService seeded from a fixture.

    Args:
        fixture: Loaded fixture
        active_user_id: User to activate when the fixture does not name one

    Returns:
        PolicyService over fresh in-memory collaborators
    """
    account_service = AccountService(active_user_id)
    organization_service = OrganizationService()
    policy_service = PolicyService(account_service, organization_service)

    seed_services(fixture, account_service, organization_service, policy_service)
    return policy_service
