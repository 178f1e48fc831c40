from __future__ import annotations

import argparse
import asyncio

import uvicorn

import slightly.db as db
from slightly.auth import hash_password
from slightly.color_scheme import COLOR_SCHEME_KEY, sanitize_color_scheme
from slightly.db.models import Base, User
from slightly.db.repos import UserMetaRepository, UserRepository


async def _init_db() -> None:
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def _create_user(email: str, password: str, display_name: str) -> None:
    normalized_email = email.strip().lower()
    async with db.SessionMaker() as session:
        users = UserRepository(session)
        if await users.get_by_email(normalized_email) is not None:
            raise SystemExit(f"User {normalized_email} already exists")

        user = await users.add(
            User(
                email=normalized_email,
                display_name=display_name.strip() or normalized_email,
                password_hash=hash_password(password),
            )
        )
        await users.commit()

    print(f"Created user {user.id} <{normalized_email}>")


async def _set_color_scheme(email: str, scheme: str) -> None:
    sanitized = sanitize_color_scheme(scheme)
    async with db.SessionMaker() as session:
        user = await UserRepository(session).get_by_email(email)
        if user is None:
            raise SystemExit(f"No user with email {email.strip().lower()}")

        meta = UserMetaRepository(session)
        if sanitized:
            await meta.set_value(user.id, COLOR_SCHEME_KEY, sanitized)
        else:
            await meta.delete_value(user.id, COLOR_SCHEME_KEY)
        await meta.commit()

    print(f"Color scheme for {user.email}: {sanitized or 'system default'}")


def main() -> None:
    parser = argparse.ArgumentParser(prog="slightly")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("init-db")

    create_user = sub.add_parser("create-user")
    create_user.add_argument("--email", required=True)
    create_user.add_argument("--password", required=True)
    create_user.add_argument("--display-name", default="")

    set_scheme = sub.add_parser("set-color-scheme")
    set_scheme.add_argument("--email", required=True)
    set_scheme.add_argument("--scheme", required=True, choices=["light", "dark", "system"])

    serve = sub.add_parser("serve")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")

    args = parser.parse_args()

    if args.cmd == "init-db":
        asyncio.run(_init_db())
    elif args.cmd == "create-user":
        asyncio.run(_create_user(args.email, args.password, args.display_name))
    elif args.cmd == "set-color-scheme":
        asyncio.run(_set_color_scheme(args.email, args.scheme))
    elif args.cmd == "serve":
        uvicorn.run("slightly.app:app", host=args.host, port=args.port, reload=args.reload)
    else:
        raise SystemExit(2)
