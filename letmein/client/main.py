import argparse
import getpass
import logging
import sys
from typing import List, Optional

from letmein.client.config import get_settings
from letmein.client.document import DocumentStore
from letmein.client.profile_manager import ProfileManager
from letmein.client.sync_service import SyncService
from letmein.core.errors import LetmeinError, ProfileMatchError
from letmein.core.models import ProfileOptions

USAGE = """letmein is a password generator

The commands are:

    init        create a new client instance
    list        list all matching profiles with passwords
    create      create a new profile
    update      update an existing profile
    delete      delete a profile
    sync        sync profiles with server
"""


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--master", help="Master password (or set LETMEIN_MASTER)")
    common.add_argument("--file", default=str(settings.document_path), help="Profile data file")
    common.add_argument("-v", "--verbose", action="store_true", help="Dump sync messages and debug logs")

    profile_flags = argparse.ArgumentParser(add_help=False)
    profile_flags.add_argument("--username", help="User name/email")
    profile_flags.add_argument("--url", help="Website URL")
    profile_flags.add_argument("--generation", type=int, help="Generation counter")
    profile_flags.add_argument("--length", type=int, help="Password length (1-32)")
    for flag, label in (("lower", "lower-case letters"), ("upper", "upper-case letters"),
                        ("digits", "digits"), ("punctuation", "punctuation"), ("spaces", "spaces")):
        profile_flags.add_argument(f"--{flag}", action=argparse.BooleanOptionalAction,
                                   default=None, help=f"Include {label}")
    profile_flags.add_argument("--include", help="Include specific ASCII characters")
    profile_flags.add_argument("--exclude", help="Exclude specific ASCII characters")

    parser = argparse.ArgumentParser(prog="letmein", description=USAGE,
                                     formatter_class=argparse.RawDescriptionHelpFormatter)
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init", parents=[common], help="create a new client instance")
    p.add_argument("--name", required=True, help="Name to identify your account")

    p = sub.add_parser("list", parents=[common], help="list all matching profiles with passwords")
    p.add_argument("search", nargs="?", default="", help="Profile name search")

    p = sub.add_parser("create", parents=[common, profile_flags], help="create a new profile")
    p.add_argument("name", help="Profile name")

    p = sub.add_parser("update", parents=[common, profile_flags], help="update an existing profile")
    p.add_argument("search", help="Profile name search (must match exactly one profile)")

    p = sub.add_parser("delete", parents=[common], help="delete a profile")
    p.add_argument("search", help="Profile name search (must match exactly one profile)")

    p = sub.add_parser("sync", parents=[common], help="sync profiles with server")
    p.add_argument("--server", default=settings.server_url, help="Server URL")

    return parser


def get_master(args) -> str:
    if args.master:
        return args.master
    settings = get_settings()
    if settings.master is not None and settings.master.get_secret_value():
        return settings.master.get_secret_value()
    master = getpass.getpass("Master password: ")
    if not master:
        raise LetmeinError("master password is required")
    return master


def profile_options(args) -> ProfileOptions:
    return ProfileOptions(
        username=args.username,
        url=args.url,
        generation=args.generation,
        length=args.length,
        lower=args.lower,
        upper=args.upper,
        digits=args.digits,
        punctuation=args.punctuation,
        spaces=args.spaces,
        include=args.include,
        exclude=args.exclude,
    )


def run(args) -> None:
    manager = ProfileManager(DocumentStore(args.file))
    master = get_master(args)

    if args.command == "init":
        client = manager.init_client(args.name, master)
        print(f"client created for {client.name} (verify code {client.verify})")

    elif args.command == "list":
        for profile, password in manager.list_profiles(master, args.search):
            print(f"    {profile} --> {password}")

    elif args.command == "create":
        profile, password = manager.create_profile(master, args.name, profile_options(args))
        print(f"profile created: {profile} --> {password}")

    elif args.command == "update":
        profile, password = manager.update_profile(master, args.search, profile_options(args))
        print(f"profile updated: {profile} --> {password}")

    elif args.command == "delete":
        summary = manager.delete_profile(master, args.search)
        print(f"profile deleted: {summary}")

    elif args.command == "sync":
        service = SyncService(args.server, timeout=get_settings().timeout)
        report = manager.sync(master, service)
        print(f"sync complete: {report}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        run(args)
    except ProfileMatchError as e:
        if e.matches:
            print("Profile matches:", file=sys.stderr)
            for elt in e.matches:
                print(f"    {elt}", file=sys.stderr)
        print(e, file=sys.stderr)
        return 1
    except LetmeinError as e:
        print(e, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
