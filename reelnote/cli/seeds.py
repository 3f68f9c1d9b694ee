"""CLI commands for category seeding."""

import argparse
import asyncio
import sys
from typing import List, Optional

import structlog

from reelnote.common.logging_config import bind_context
from reelnote.common.string_utils import normalize_string

logger = structlog.get_logger(__name__)

DEFAULT_CATEGORIES = ["Action", "Drama", "Romance", "Comedy", "Sci-fi"]


async def seed_categories(names: Optional[List[str]] = None) -> int:
    """
    Create the default categories, skipping ones that already exist.

    Args:
        names: Category names to ensure (default: DEFAULT_CATEGORIES)

    Returns:
        Number of categories ensured
    """
    import reelnote

    await reelnote.configure()
    try:
        service = await reelnote.get_multimedia_service()
        names = names or DEFAULT_CATEGORIES
        for name in names:
            await service.create_category(name)
        logger.info("categories_seeded", count=len(names))
        return len(names)
    finally:
        await reelnote.shutdown()


async def add_category(name: str) -> bool:
    """
    Validate and create a single category.

    Returns:
        True if the category exists afterwards, False if the name was invalid
    """
    import reelnote
    from reelnote.services.changeset import Changeset
    from reelnote.services.schemas import CategoryInput

    changeset = Changeset.cast({}, {"name": name}, CategoryInput)
    if not changeset.valid:
        for field_name, messages in changeset.errors.items():
            for message in messages:
                print(f"Error: {field_name} {message}", file=sys.stderr)
        return False

    await reelnote.configure()
    try:
        service = await reelnote.get_multimedia_service()
        category = await service.create_category(normalize_string(changeset.get_field("name")))
        print(f"{category.id:<4} {category.name}")
        return True
    finally:
        await reelnote.shutdown()


async def list_categories() -> None:
    """Print all categories alphabetically."""
    import reelnote

    await reelnote.configure()
    try:
        service = await reelnote.get_multimedia_service()
        categories = await service.list_alphabetical_categories()
    finally:
        await reelnote.shutdown()

    if not categories:
        print("No categories found")
        return

    print(f"{'ID':<4} {'Name':<30}")
    print("-" * 34)
    for category in categories:
        print(f"{category.id:<4} {category.name:<30}")


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for category CLI commands."""
    parser = argparse.ArgumentParser(
        prog="reelnote-seed",
        description="reelnote category seeding commands",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "seed",
        help="Create the default categories",
        description=f"Ensure the default categories exist: {', '.join(DEFAULT_CATEGORIES)}",
    )

    add_parser = subparsers.add_parser(
        "add",
        help="Create a category",
        description="Create a category unless one with the same name exists",
    )
    add_parser.add_argument("name", help="Category name")

    subparsers.add_parser(
        "list",
        help="List categories",
        description="Display all categories in alphabetical order",
    )

    args = parser.parse_args(argv)
    bind_context(command=args.command)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "seed":
        count = asyncio.run(seed_categories())
        print(f"Seeded {count} categories")
        sys.exit(0)
    elif args.command == "add":
        success = asyncio.run(add_category(args.name))
        sys.exit(0 if success else 1)
    elif args.command == "list":
        asyncio.run(list_categories())
        sys.exit(0)


if __name__ == "__main__":
    main()
