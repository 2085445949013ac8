"""CLI tools for AnimAlert administration."""

import logging

import click

from animalert.db.session import SessionLocal
from animalert.services import complaint_template_service, taxonomy_seeder


@click.group()
def cli():
    """AnimAlert CLI tools."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option(
    "--templates-dir",
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help="Directory with petition HTML templates (defaults to the bundled ones)",
)
def seed_taxonomy(templates_dir: str | None):
    """
    Seed complaint categories, institutions, doc types and petition templates.

    Safe to re-run: existing rows are updated in place.

    Example:
        python -m animalert.cli seed-taxonomy
    """
    db = SessionLocal()
    try:
        counts = taxonomy_seeder.seed_all(db, templates_dir)
        db.commit()
    except Exception as e:
        db.rollback()
        click.echo(f"❌ Seeding failed: {e}", err=True)
        raise SystemExit(1)
    finally:
        db.close()

    click.echo(f"✓ Categories: {counts['categories']}")
    click.echo(f"✓ Institutions: {counts['institutions']}")
    click.echo(f"✓ Doc types created: {counts['doc_types_created']}")
    click.echo(f"✓ Category links created: {counts['links_created']}")
    click.echo(f"✓ Templates: {counts['templates']}")


@cli.command()
def list_templates():
    """List petition templates (id = incident type used by the form)."""
    db = SessionLocal()
    try:
        template_types = complaint_template_service.list_template_types(db)
    finally:
        db.close()

    if not template_types:
        click.echo("No templates found. Run seed-taxonomy first.")
        return
    for template in template_types:
        click.echo(f"{template.id}\t{template.display_name}")


if __name__ == "__main__":
    cli()
