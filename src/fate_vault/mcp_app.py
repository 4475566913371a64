"""FastMCP integration: expose the character editor as MCP tools.

Run in dev with:

    python -m fate_vault.mcp_app

Tools:
- list_characters() -> {count, characters}
- get_character(character_id) -> canonical editing model
- normalize_character(document) / persist_character(model) -> shape conversion only
- save_character(character_id, model) -> backend response
- create_character(model, edition) -> backend response (new identifier included)
- list_templates() -> [{edition, name}]
- describe_skill_level(level) / sort_skills(skills) -> ladder helpers
- list_character_images(character_id) -> [{name, url}]
"""
import argparse
import json
import logging
import sys

from fastmcp import FastMCP

from . import config
from .ladder import describe_level, is_valid_level, sort_skill_groups
from .normalizer import to_canonical, to_persisted
from .session import EditingSession

LOG = logging.getLogger(__name__)

mcp = FastMCP("fate-vault")


def _session() -> EditingSession:
    # clients read config at construction, so CLI overrides apply
    return EditingSession()


@mcp.tool
def list_characters() -> dict:
    """Return a summary of the characters stored in the backend."""
    session = _session()
    entries = []
    for doc in session.characters.list_characters():
        entries.append(
            {
                "id": doc.get("_id") or doc.get("id"),
                "name": doc.get("name") or "",
                "edition": doc.get("edition"),
                "playMode": doc.get("playMode") is True,
            }
        )
    return {"count": len(entries), "characters": sorted(entries, key=lambda e: (e.get("name") or "").lower())}


@mcp.tool
def get_character(character_id: str) -> dict:
    """Return the canonical editing model of one character.

    Legacy document shapes are upgraded on the way out; the stored record is
    not modified.
    """
    return _session().load(character_id)


@mcp.tool
def normalize_character(document: dict) -> dict:
    """Convert a raw character document to the canonical editing model."""
    return to_canonical(document)


@mcp.tool
def persist_character(model: dict) -> dict:
    """Convert an editing model to the document shape stored by the backend."""
    return to_persisted(model)


@mcp.tool
def save_character(character_id: str, model: dict) -> dict:
    """Save an edited character (raw or canonical) back to the backend."""
    session = _session()
    session.character_id = character_id
    session.character = to_canonical(model)
    return session.save()


@mcp.tool
def create_character(model: dict | None = None, edition: str | None = None) -> dict:
    """Create a character, from ``model`` or else from the ``edition`` template."""
    session = _session()
    if model:
        session.start_new(model)
    else:
        session.load_template(edition)
    return session.save()


@mcp.tool
def list_templates() -> list:
    """Return the available character templates."""
    return [
        {"edition": t.get("edition"), "name": t.get("name") or t.get("edition") or ""}
        for t in _session().characters.list_templates()
    ]


@mcp.tool
def describe_skill_level(level: str) -> dict:
    """Return the ladder adjective for a skill level label such as ``+3``."""
    return {"level": level, "valid": is_valid_level(level), "description": describe_level(level)}


@mcp.tool
def sort_skills(skills: list) -> list:
    """Order skill groups from the highest level to the lowest."""
    return sort_skill_groups([group for group in skills if isinstance(group, dict)])


@mcp.tool
def list_character_images(character_id: str) -> list:
    """Return storage names and download URLs of a character's images."""
    session = _session()
    session.load(character_id)
    return [{"name": name, "url": session.image_url(name)} for name in session.images if isinstance(name, str)]


@mcp.resource("character://{character_id}/profile")
def character_profile_resource(character_id: str) -> str:
    """Return the character's canonical editing model as JSON."""
    model = _session().load(character_id)
    return json.dumps(model, ensure_ascii=False, default=str)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="fate-vault")
    parser.add_argument("--transport", choices=["stdio", "http", "sse"], default="stdio",
                        help="Transport to use: stdio (default), http (streamable HTTP), or sse")
    parser.add_argument("--host", default=None, help="Host to bind when using network transports")
    parser.add_argument("--port", type=int, default=None, help="Port to bind when using network transports")
    parser.add_argument("--api-url", default=None,
                        help="Base URL of the character backend (overrides API_BASE_URL env)")
    parser.add_argument("--storage-url", default=None,
                        help="Base URL of the storage service (overrides STORAGE_BASE_URL env)")
    ns = parser.parse_args(argv if argv is not None else sys.argv[1:])

    logging.basicConfig(level=config.LOG_LEVEL)

    if ns.api_url:
        config.API_BASE_URL = ns.api_url.rstrip("/")
        LOG.info("Using backend: %s", config.API_BASE_URL)
    if ns.storage_url:
        config.STORAGE_BASE_URL = ns.storage_url.rstrip("/")
        LOG.info("Using storage service: %s", config.STORAGE_BASE_URL)

    transport = ns.transport
    if transport == "stdio":
        mcp.run()
        return

    host = ns.host or config.HOST
    port = ns.port or config.PORT
    if transport == "http":
        mcp.run(transport="http", host=host, port=port)
    elif transport == "sse":
        mcp.run(transport="sse", host=host, port=port)


if __name__ == "__main__":
    main(sys.argv[1:])
