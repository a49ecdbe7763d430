"""
Evaluators for the Policy Engine.

Pure functions that apply effective options to runtime inputs, and the
decoder that turns a wire policy list into domain records.
"""

import logging
import string
from typing import Any, Dict, List, Optional, Union

from ..models import ListResponse, MasterPasswordPolicyOptions, Policy

logger = logging.getLogger(__name__)

SPECIAL_CHARACTERS = frozenset("!@#$%^&*")
UPPERCASE_CHARACTERS = frozenset(string.ascii_uppercase)
LOWERCASE_CHARACTERS = frozenset(string.ascii_lowercase)
DIGIT_CHARACTERS = frozenset(string.digits)


def _contains_any(password: str, characters: frozenset) -> bool:
    return any(c in characters for c in password)


def master_password_violations(
    password_strength_score: int,
    password: str,
    options: Optional[MasterPasswordPolicyOptions],
) -> List[str]:
    """
    List the master password rules that password violates.

    Args:
        password_strength_score: Estimated strength of password
        password: Candidate master password
        options: Effective master password options; None means no requirements

    Returns:
        Human-readable descriptions of each violated rule (empty if compliant)
    """
    if options is None:
        return []

    password = password or ""
    violations = []

    if options.min_length > 0 and len(password) < options.min_length:
        violations.append(f"Must be at least {options.min_length} characters long")

    if options.min_complexity > 0 and password_strength_score < options.min_complexity:
        violations.append(f"Strength score must be at least {options.min_complexity}")

    if options.require_upper and not _contains_any(password, UPPERCASE_CHARACTERS):
        violations.append("Must contain an uppercase letter (A-Z)")

    if options.require_lower and not _contains_any(password, LOWERCASE_CHARACTERS):
        violations.append("Must contain a lowercase letter (a-z)")

    if options.require_numbers and not _contains_any(password, DIGIT_CHARACTERS):
        violations.append("Must contain a number (0-9)")

    if options.require_special and not _contains_any(password, SPECIAL_CHARACTERS):
        violations.append("Must contain a special character (!@#$%^&*)")

    return violations


def evaluate_master_password(
    password_strength_score: int,
    password: str,
    options: Optional[MasterPasswordPolicyOptions],
) -> bool:
    """
    Check a candidate master password against effective options.

    Returns:
        True if the password violates at least one configured rule,
        False if it satisfies them all
    """
    violations = master_password_violations(password_strength_score, password, options)
    if violations:
        logger.debug(f"Master password violates {len(violations)} rule(s)")
    return bool(violations)


def map_policies_from_token(
    response: Optional[Union[ListResponse, Dict[str, Any]]],
) -> Optional[List[Policy]]:
    """
    Build policy records from a wire list response.

    Args:
        response: ListResponse (or its decoded JSON body), possibly None

    Returns:
        None when the response or its data is None, otherwise one Policy
        per wire item with identical field values
    """
    if response is None:
        return None

    if not isinstance(response, ListResponse):
        response = ListResponse.from_response(response)

    if response.data is None:
        return None

    return [
        Policy(
            id=item.id,
            organization_id=item.organization_id,
            type=item.type,
            enabled=item.enabled,
            data=item.data,
        )
        for item in response.data
    ]
