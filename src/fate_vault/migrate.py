"""Upgrade exported character documents to the current persisted shape.

Reads YAML and JSON exports from a folder, runs each document through the
normalizer and writes it back in its original format. Useful to clean up a
dump of the characters collection before re-importing it.

    python -m fate_vault.migrate exports/ --dest upgraded/
"""
import json
import logging
from pathlib import Path

import yaml

from .models import Character
from .normalizer import to_canonical, to_persisted

LOG = logging.getLogger(__name__)

PATTERNS = ("*.yaml", "*.yml", "*.json")


def upgrade_document(document: Character) -> Character:
    """Return ``document`` in the current persisted shape (legacy shapes upgraded)."""
    return to_persisted(to_canonical(document))


def _read(path: Path):
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        return json.loads(text)
    return yaml.safe_load(text)


def _write(path: Path, document: Character) -> None:
    if path.suffix == ".json":
        text = json.dumps(document, ensure_ascii=False, indent=2, default=str)
    else:
        text = yaml.safe_dump(document, allow_unicode=True, sort_keys=False)
    path.write_text(text, encoding="utf-8")


def migrate_directory(src: Path, dest: Path | None = None) -> list[Path]:
    """Upgrade every character file in ``src``; in place when ``dest`` is None.

    Files that cannot be parsed, or that do not hold a mapping, are logged and
    skipped. Returns the written paths.
    """
    src = Path(src)
    dest = Path(dest) if dest is not None else src
    dest.mkdir(parents=True, exist_ok=True)

    written = []
    for pattern in PATTERNS:
        for f in sorted(src.glob(pattern)):
            try:
                data = _read(f)
            except (OSError, ValueError, yaml.YAMLError) as ex:
                LOG.warning("Skipping unreadable %s: %s", f, ex)
                continue
            if not isinstance(data, dict):
                LOG.warning("Skipping %s: not a character document", f)
                continue
            out = dest / f.name
            _write(out, upgrade_document(data))
            LOG.info("Upgraded %s -> %s", f, out)
            written.append(out)
    return written


def main(argv: list[str] | None = None) -> None:
    import argparse
    from . import config

    logging.basicConfig(level=config.LOG_LEVEL)
    parser = argparse.ArgumentParser(prog="fate-vault-migrate")
    parser.add_argument("src", help="Folder holding exported character YAML/JSON files")
    parser.add_argument("--dest", default=None, help="Output folder (defaults to rewriting SRC in place)")
    args = parser.parse_args(argv)
    written = migrate_directory(Path(args.src), Path(args.dest) if args.dest else None)
    LOG.info("Upgraded %d character file(s)", len(written))


if __name__ == "__main__":
    main()
