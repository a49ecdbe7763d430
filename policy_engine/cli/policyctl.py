#!/usr/bin/env python3
"""
Policy Control CLI - Command Line Interface for the Policy Engine.

Loads users, memberships and policy responses from a fixture file and
inspects which policies apply and what the effective options are.
"""

import logging
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import EngineConfig, configure_logging, load_config
from ..engine.evaluators import master_password_violations
from ..errors import PolicyEngineError
from ..ingestion import build_policy_service, load_fixture
from ..models import Policy, PolicyType, coerce_policy_type, policy_type_name

logger = logging.getLogger(__name__)

# Rich console for pretty output
console = Console()


class PolicyController:
    """Main controller for Policy Engine CLI operations."""

    def __init__(self, config: EngineConfig, fixture_path: Path, user_id: Optional[str] = None):
        """Initialize the controller from a fixture file."""
        self.config = config
        fixture = load_fixture(fixture_path)
        self.policy_service = build_policy_service(fixture, config.active_user_id)

        if user_id is not None:
            self.policy_service.account_service.switch_account(user_id)

        self.user_id = self.policy_service.account_service.current_user_id
        logger.info(f"Policy Engine initialized for user {self.user_id}")


def _parse_policy_type(value: str) -> PolicyType:
    policy_type = coerce_policy_type(value)
    if not isinstance(policy_type, PolicyType):
        names = ", ".join(t.name for t in PolicyType)
        raise click.BadParameter(f"Unknown policy type '{value}'. Expected one of: {names}")
    return policy_type


def _policies_table(title: str, policies: List[Policy]) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("Organization", style="green")
    table.add_column("Type", style="yellow")
    table.add_column("Data", style="magenta")

    for policy in policies:
        table.add_row(
            policy.id,
            policy.organization_id,
            policy_type_name(policy.type),
            str(policy.data) if policy.data else "-",
        )
    return table


def _options_table(title: str, options) -> Table:
    table = Table(title=title)
    table.add_column("Option", style="cyan")
    table.add_column("Value", style="magenta")

    for name, value in options.model_dump(mode="json").items():
        table.add_row(name, str(value))
    return table


@click.group()
@click.option('--config', '-c', type=click.Path(exists=True), help='Path to configuration file')
@click.option('--fixture', '-f', required=True, type=click.Path(exists=True),
              help='YAML or JSON file with users, memberships and policies')
@click.option('--user', '-u', help='User to evaluate (defaults to the fixture\'s active user)')
@click.pass_context
def cli(ctx, config, fixture, user):
    """Policy Engine Control CLI - Organization policy evaluation"""
    ctx.ensure_object(dict)

    try:
        engine_config = load_config(config)
        configure_logging(engine_config)
        ctx.obj['controller'] = PolicyController(engine_config, Path(fixture), user)
    except PolicyEngineError as e:
        console.print(f"[red]{e}[/red]")
        ctx.exit(2)


@cli.command()
@click.option('--type', 'policy_type', help='Only show policies of this type (e.g. MasterPassword)')
@click.option('--admin-override', is_flag=True, help='Include policies the user\'s role is exempt from')
@click.pass_context
def applicable(ctx, policy_type, admin_override):
    """List the policies that apply to the user."""
    controller = ctx.obj['controller']
    service = controller.policy_service

    types = [_parse_policy_type(policy_type)] if policy_type else list(PolicyType)
    policies = []
    for t in types:
        policies.extend(service.get_all(t, allow_admin_override=admin_override).first())

    if not policies:
        console.print(f"[yellow]No policies apply to {controller.user_id}[/yellow]")
        return

    console.print(_policies_table(f"Policies applying to {controller.user_id} ({len(policies)})", policies))


@cli.command()
@click.pass_context
def master_password_options(ctx):
    """Show the effective master password requirements."""
    controller = ctx.obj['controller']

    options = controller.policy_service.master_password_policy_options().first()
    if options is None:
        console.print("[yellow]No master password policy applies[/yellow]")
        return

    console.print(_options_table("Master Password Requirements", options))


@cli.command()
@click.argument('password')
@click.option('--score', default=0, type=click.IntRange(0, 4), help='Estimated strength score (0-4)')
@click.pass_context
def check_password(ctx, password, score):
    """Check a candidate master password against the effective requirements."""
    controller = ctx.obj['controller']

    options = controller.policy_service.master_password_policy_options().first()
    violations = master_password_violations(score, password, options)

    if not violations:
        console.print("[green]✓ Password satisfies the master password policy[/green]")
        return

    console.print(Panel.fit("\n".join(f"• {v}" for v in violations),
                            title="[red]✗ Password violates the master password policy[/red]"))
    ctx.exit(1)


@cli.command()
@click.argument('organization_id')
@click.pass_context
def reset_password_options(ctx, organization_id):
    """Show account recovery options for an organization."""
    service = ctx.obj['controller'].policy_service

    policies = service.get_all(PolicyType.RESET_PASSWORD).first()
    options, auto_enroll = service.get_reset_password_policy_options(policies, organization_id)

    console.print(_options_table(f"Reset Password Options for {organization_id}", options))
    console.print(f"Auto-enroll: {'[green]yes[/green]' if auto_enroll else '[yellow]no[/yellow]'}")


@cli.command()
@click.pass_context
def generator_options(ctx):
    """Show the effective password generator constraints."""
    options = ctx.obj['controller'].policy_service.password_generator_policy_options().first()
    if options is None:
        console.print("[yellow]No password generator policy applies[/yellow]")
        return

    console.print(_options_table("Password Generator Constraints", options))


@cli.command()
@click.pass_context
def vault_timeout(ctx):
    """Show the effective maximum vault timeout."""
    options = ctx.obj['controller'].policy_service.maximum_vault_timeout_policy_options().first()
    if options is None:
        console.print("[yellow]No maximum vault timeout policy applies[/yellow]")
        return

    console.print(_options_table("Maximum Vault Timeout", options))


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
