"""Category management commands."""

import click
from finledger.cli.error_handling import handle_domain_error
from finledger.domain.category import CategoryService
from finledger.domain.entities import CategoryType
from finledger.domain.errors import StorageError

TYPE_CHOICE = click.Choice([t.value for t in CategoryType])


@click.group()
def category_group():
    """Manage categories."""
    pass


@category_group.command("create")
@click.argument("name")
@click.option("--type", "category_type", type=TYPE_CHOICE, required=True, help="Category type")
@click.option("--icon", default="tag", show_default=True, help="Icon name")
@click.option("--color", default="#6366f1", show_default=True, help="Display color")
@click.pass_context
def create_category(ctx, name: str, category_type: str, icon: str, color: str):
    """Create a new category.

    Examples:
        finledger category create "Groceries" --type expense
        finledger category create "Freelance" --type income --color "#10b981"
    """
    service = CategoryService(ctx.obj["db"])

    try:
        category_id = service.create_category(name=name, type=category_type, icon=icon, color=color)
        click.echo(f"Created {category_type} category '{name}' (ID: {category_id})")
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)


@category_group.command("list")
@click.option("--type", "category_type", type=TYPE_CHOICE, help="Only show one type")
@click.pass_context
def list_categories(ctx, category_type: str | None):
    """List categories."""
    service = CategoryService(ctx.obj["db"])

    categories = service.list_categories(category_type)
    if not categories:
        click.echo("No categories found. Run 'finledger init-categories' to create the defaults.")
        return

    for category_obj in categories:
        click.echo(
            f"ID: {category_obj.id:3d} | {category_obj.type.value:7s} | {category_obj.name}"
        )


@category_group.command("update")
@click.argument("category_id", type=int)
@click.option("--name", help="New name")
@click.option("--icon", help="New icon")
@click.option("--color", help="New color")
@click.pass_context
def update_category(ctx, category_id: int, name: str | None, icon: str | None, color: str | None):
    """Update a category's name or display settings.

    The type of a category cannot be changed.
    """
    service = CategoryService(ctx.obj["db"])

    try:
        service.update_category(category_id, name=name, icon=icon, color=color)
        click.echo(f"Updated category {category_id}")
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)


@category_group.command("delete")
@click.argument("category_id", type=int)
@click.pass_context
def delete_category(ctx, category_id: int):
    """Delete a category that no transaction or purchase uses."""
    service = CategoryService(ctx.obj["db"])

    try:
        service.delete_category(category_id)
        click.echo(f"Deleted category {category_id}")
    except (ValueError, StorageError) as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(category_group, name="category")
