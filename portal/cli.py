"""
CLI entry point for database administration and serving.

Usage:
    # Create missing tables and indexes
    python -m portal.cli init-db

    # Insert the demo client and default admins into an empty database
    python -m portal.cli seed

    # Provision a back-office operator
    python -m portal.cli create-admin --username ops --email ops@example.com \
        --full-name "Ops Team" --role super_admin --password 'S3cret!'

    # Run the API with uvicorn
    python -m portal.cli serve --port 8000
"""

import argparse
import logging
import sys

from portal.core.config import settings
from portal.domain.brokerage.entities import AdminRole
from portal.domain.brokerage.errors import BrokerageDomainError
from portal.infrastructure.database.engine import get_engine
from portal.infrastructure.database.migrations import bootstrap_schema
from portal.infrastructure.database.seed import provision_admin, seed_database
from portal.infrastructure.security.passwords import BcryptPasswordHasher
from portal.shared.logging import configure_logging

logger = logging.getLogger(__name__)


def cmd_init_db(args: argparse.Namespace) -> None:
    """Bootstrap the schema and print what was created."""
    report = bootstrap_schema(get_engine())
    print(f"Dialect: {report.dialect}")
    print(f"Created tables: {', '.join(report.created_tables) or '-'}")
    print(f"Existing tables: {', '.join(report.existing_tables) or '-'}")
    print(f"Created indexes: {', '.join(report.created_indexes) or '-'}")


def cmd_seed(args: argparse.Namespace) -> None:
    engine = get_engine()
    bootstrap_schema(engine)
    report = seed_database(engine, BcryptPasswordHasher(rounds=settings.bcrypt_rounds))
    print(f"Seeded users: {', '.join(report.users) or '-'}")
    print(f"Seeded admins: {', '.join(report.admins) or '-'}")


def cmd_create_admin(args: argparse.Namespace) -> None:
    engine = get_engine()
    bootstrap_schema(engine)
    admin = provision_admin(
        engine,
        BcryptPasswordHasher(rounds=settings.bcrypt_rounds),
        username=args.username,
        email=args.email,
        full_name=args.full_name,
        role=AdminRole(args.role),
        password=args.password,
    )
    print(f"Created {admin.role.value} {admin.username} ({admin.id})")


def cmd_serve(args: argparse.Namespace) -> None:
    """Run the full application with uvicorn."""
    import uvicorn

    logger.info("Starting %s at http://%s:%d", settings.project_name, args.host, args.port)
    uvicorn.run("portal.main:app", host=args.host, port=args.port, reload=args.reload)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=f"{settings.project_name} CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init-db", help="Create missing tables and indexes")
    init_parser.set_defaults(func=cmd_init_db)

    seed_parser = subparsers.add_parser("seed", help="Seed the demo client and default admins")
    seed_parser.set_defaults(func=cmd_seed)

    admin_parser = subparsers.add_parser("create-admin", help="Provision a back-office admin")
    admin_parser.add_argument("--username", required=True)
    admin_parser.add_argument("--email", required=True)
    admin_parser.add_argument("--full-name", required=True, dest="full_name")
    admin_parser.add_argument(
        "--role",
        required=True,
        choices=[role.value for role in AdminRole],
    )
    admin_parser.add_argument("--password", required=True)
    admin_parser.set_defaults(func=cmd_create_admin)

    serve_parser = subparsers.add_parser("serve", help="Run the API with uvicorn")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    serve_parser.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    configure_logging(level=settings.log_level)
    args = build_parser().parse_args(argv)
    try:
        args.func(args)
    except BrokerageDomainError as exc:
        logger.error("%s", exc.message)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
