"""CLI entry point for the Mailchimp list cache.

Commands:
    listkeeper lists       list all cached lists
    listkeeper show        fields and interest groupings of one list
    listkeeper count       combined subscriber count of lists
    listkeeper field-name  display name of a merge tag
    listkeeper flush       empty the list caches
"""

import logging
import sys

import click

from listkeeper.app import build_container
from listkeeper.config import MAILCHIMP_API_KEY

logger = logging.getLogger("listkeeper")


def _validate_config() -> None:
    """Fail loudly if required config is missing."""
    if not MAILCHIMP_API_KEY or "-" not in MAILCHIMP_API_KEY:
        click.echo("Error: Missing or malformed config: MAILCHIMP_API_KEY", err=True)
        click.echo("Set it in secrets/internal.env or the environment.", err=True)
        sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """listkeeper: tiered cache for Mailchimp list metadata."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    ctx.obj = build_container()


# ------------------------------------------------------------------
# listkeeper lists
# ------------------------------------------------------------------


@cli.command("lists")
@click.option("--fallback", is_flag=True, help="Read the long-lived fallback cache first.")
@click.pass_obj
def lists_cmd(container, fallback: bool) -> None:
    """Show all lists with their subscriber and field counts."""
    _validate_config()
    lists = container.resolve("lists").get_lists(force_fallback=fallback)
    if not lists:
        click.echo("No lists available.")
        return

    click.echo(f"{'ID':<12} {'SUBSCRIBERS':>11} {'FIELDS':>6}  NAME")
    for summary in lists.values():
        click.echo(
            f"{summary.id:<12} {summary.subscriber_count:>11} {len(summary.merge_vars):>6}  {summary.name}"
        )
    click.echo(f"\n{len(lists)} list(s)")


# ------------------------------------------------------------------
# listkeeper show
# ------------------------------------------------------------------


@cli.command()
@click.argument("list_id")
@click.pass_obj
def show(container, list_id: str) -> None:
    """Show the fields and interest groupings of one list."""
    _validate_config()
    summary = container.resolve("lists").get_list(list_id)
    if summary is None:
        click.echo(f"Error: No list with id {list_id}.", err=True)
        sys.exit(1)

    click.echo(f"{summary.name} ({summary.id}): {summary.subscriber_count} subscriber(s)")
    click.echo("\nFields:")
    for field in summary.merge_vars:
        required = " *" if field.req else ""
        click.echo(f"  {field.tag:<24} {field.field_type:<10} {field.name}{required}")
        if field.choices:
            click.echo(f"  {'':<24} choices: {', '.join(field.choices)}")

    if summary.interest_groupings:
        click.echo("\nInterest groupings:")
        for grouping in summary.interest_groupings:
            click.echo(f"  [{grouping.id}] {grouping.name} ({grouping.form_field or 'n/a'})")
            for group in grouping.groups:
                click.echo(f"      - {group.name}")


# ------------------------------------------------------------------
# listkeeper count
# ------------------------------------------------------------------


@cli.command()
@click.argument("list_ids", nargs=-1, required=True)
@click.pass_obj
def count(container, list_ids: tuple[str, ...]) -> None:
    """Show the combined subscriber count of LIST_IDS."""
    _validate_config()
    total = container.resolve("counts").get_subscriber_count(list(list_ids))
    click.echo(str(total))


# ------------------------------------------------------------------
# listkeeper field-name
# ------------------------------------------------------------------


@cli.command("field-name")
@click.argument("list_id")
@click.argument("tag")
@click.pass_obj
def field_name(container, list_id: str, tag: str) -> None:
    """Show the display name of the field with merge TAG."""
    _validate_config()
    name = container.resolve("lists").get_list_field_name_by_tag(list_id, tag)
    if not name:
        click.echo(f"Error: No field {tag} on list {list_id}.", err=True)
        sys.exit(1)
    click.echo(name)


# ------------------------------------------------------------------
# listkeeper flush
# ------------------------------------------------------------------


@cli.command()
@click.pass_obj
def flush(container) -> None:
    """Empty the list and subscriber count caches."""
    from listkeeper.lists import empty_caches

    empty_caches(container.resolve("cache"))
    click.echo("List caches emptied.")


if __name__ == "__main__":
    cli()
