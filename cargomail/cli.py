"""
Command line management for the Cargomail sync backend
"""
import argparse
import getpass
import logging
import sys

from .config import settings
from .database import SessionLocal, create_tables
from .errors import DuplicateKeyError
from .logging_config import setup_logging
from .services.user_service import UserService

logger = logging.getLogger(__name__)


def init_db(args) -> int:
    create_tables()
    print(f"✅ Tables created in {settings.DATABASE_URL}")
    return 0


def create_user(args) -> int:
    password = args.password or getpass.getpass("Enter password for the user: ")
    username = args.username or args.email.split("@")[0]

    create_tables()
    db = SessionLocal()
    try:
        user = UserService(db).register(
            username=username,
            email=args.email,
            password=password,
            full_name=args.full_name,
        )
    except DuplicateKeyError as exc:
        print(f"❌ {exc.message}: {username} / {args.email}")
        return 1
    finally:
        db.close()

    print(f"✅ Created user: {user.username} ({user.email})")
    print(f"   User ID: {user.id}")
    return 0


def serve(args) -> int:
    import uvicorn

    uvicorn.run(
        "cargomail.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.LOG_LEVEL.lower(),
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cargomail", description="Manage the Cargomail sync backend"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    initdb_parser = subparsers.add_parser("initdb", help="Create database tables")
    initdb_parser.set_defaults(func=init_db)

    create_parser = subparsers.add_parser("createuser", help="Create a new user")
    create_parser.add_argument("email", help="User email address")
    create_parser.add_argument("--username", help="Username (defaults to email prefix)")
    create_parser.add_argument("--full-name", help="Full name")
    create_parser.add_argument(
        "--password", help="Password (will prompt if not provided)"
    )
    create_parser.set_defaults(func=create_user)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=settings.WEB_HOST)
    serve_parser.add_argument("--port", type=int, default=settings.WEB_PORT)
    serve_parser.add_argument("--reload", action="store_true")
    serve_parser.set_defaults(func=serve)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 1

    setup_logging()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
