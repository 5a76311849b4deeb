#!/usr/bin/env python3
"""
User Auth -- command-line client and server launcher.

Usage:
  python main.py serve --port 3001
  python main.py register --name Al --email a@b.com
  python main.py login --email a@b.com
  python main.py whoami
  python main.py users
  python main.py delete <USER-ID>
  python main.py logout

Environment variables:
  USERAUTH_API_URL   Base URL of the auth API (default http://localhost:3001/api/auth).
  JWT_SECRET         Required by `serve` only; the server refuses to start without it.

Passwords are prompted for when --password is not given. The session token is
kept in ~/.userauth/session.json (override with --session-file).
"""

import argparse
import getpass
import os
import sys
from pathlib import Path
from typing import Optional

from client.api import DEFAULT_API_URL, ApiError, AuthClient
from client.session import Event, SessionController
from client.storage import DEFAULT_SESSION_PATH, SessionStorage


def _password(args: argparse.Namespace) -> str:
    return args.password if args.password is not None else getpass.getpass("Password: ")


def _print_user(user: dict) -> None:
    print(f"  {user.get('id')}  {user.get('name')} <{user.get('email')}>  created {user.get('createdAt')}")


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _cmd_register(args: argparse.Namespace, client: AuthClient, controller: SessionController) -> int:
    data = client.register(args.name, args.email, _password(args))
    print(f"  {data['message']} (id {data['userId']})")
    return 0


def _cmd_login(args: argparse.Namespace, client: AuthClient, controller: SessionController) -> int:
    controller.dispatch(Event.submit())
    try:
        data = client.login(args.email, _password(args))
    except ApiError as e:
        controller.dispatch(Event.failure(e.message))
        raise
    controller.dispatch(Event.success(data["user"], data["token"]))
    print(f"  {data['message']}. Signed in as {data['user']['name']} <{data['user']['email']}>")
    return 0


def _cmd_logout(args: argparse.Namespace, client: AuthClient, controller: SessionController) -> int:
    controller.dispatch(Event.logout())
    print("  Logged out.")
    return 0


def _cmd_whoami(args: argparse.Namespace, client: AuthClient, controller: SessionController) -> int:
    if not controller.state.is_authenticated:
        print("  Not logged in.")
        return 1
    try:
        user = client.me(controller.state.token)
    except ApiError as e:
        if e.status_code == 401:
            # Token expired or user removed; the stored session is stale.
            controller.dispatch(Event.logout())
            print("  Session expired. Log in again.")
            return 1
        raise
    _print_user(user)
    return 0


def _cmd_users(args: argparse.Namespace, client: AuthClient, controller: SessionController) -> int:
    users = client.list_users(controller.state.token)
    if not users:
        print("  No users.")
    for user in users:
        _print_user(user)
    return 0


def _cmd_delete(args: argparse.Namespace, client: AuthClient, controller: SessionController) -> int:
    data = client.delete_user(args.user_id, controller.state.token)
    print(f"  {data['message']} (id {data['userID']})")
    return 0


_COMMANDS = {
    "register": _cmd_register,
    "login": _cmd_login,
    "logout": _cmd_logout,
    "whoami": _cmd_whoami,
    "users": _cmd_users,
    "delete": _cmd_delete,
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="user-auth",
        description="Register, log in, and manage users against the auth API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--api-url",
        default=os.environ.get("USERAUTH_API_URL") or DEFAULT_API_URL,
        metavar="URL",
        help=f"Base URL of the auth API (default: {DEFAULT_API_URL})",
    )
    parser.add_argument(
        "--session-file",
        type=Path,
        default=DEFAULT_SESSION_PATH,
        metavar="PATH",
        help="Where the logged-in session is stored",
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the API server with uvicorn")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=3001)
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development)")

    register = sub.add_parser("register", help="Create an account")
    register.add_argument("--name", required=True)
    register.add_argument("--email", required=True)
    register.add_argument("--password", help="Prompted for when omitted")

    login = sub.add_parser("login", help="Log in and store the session")
    login.add_argument("--email", required=True)
    login.add_argument("--password", help="Prompted for when omitted")

    sub.add_parser("logout", help="Forget the stored session")
    sub.add_parser("whoami", help="Show the logged-in user")
    sub.add_parser("users", help="List all users")

    delete = sub.add_parser("delete", help="Delete a user by id")
    delete.add_argument("user_id", metavar="USER-ID")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0
    if args.command == "serve":
        return _cmd_serve(args)

    client = AuthClient(args.api_url)
    controller = SessionController(SessionStorage(args.session_file))
    try:
        return _COMMANDS[args.command](args, client, controller)
    except ApiError as e:
        print(f"  [!] {e.message or e.code}")
        return 1
    finally:
        client.close()


if __name__ == "__main__":
    sys.exit(main())
