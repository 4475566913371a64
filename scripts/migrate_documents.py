"""Convenience CLI to upgrade exported character documents (wraps fate_vault.migrate)."""
from pathlib import Path
import argparse
import logging
from fate_vault import migrate


def main():
    p = argparse.ArgumentParser()
    p.add_argument("src")
    p.add_argument("--dest", default=None)
    args = p.parse_args()
    logging.basicConfig(level=logging.INFO)
    migrate.migrate_directory(Path(args.src), Path(args.dest) if args.dest else None)


if __name__ == "__main__":
    main()
