"""Configuration loader for noot.toml."""

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

CONFIG_FILENAME = "noot.toml"


@dataclass
class VaultConfig:
    """Where notes and the reference index live."""
    root: Path
    db: Path


@dataclass
class AttachmentsConfig:
    """Base directory for relative attachment paths."""
    root: Path


@dataclass
class EditorConfig:
    """Rich-text surface settings."""
    inline_images: bool = True
    link_preview_length: int = 30


@dataclass
class NotesConfig:
    """Note lifecycle settings."""
    auto_close_minutes: int = 30


@dataclass
class ApiConfig:
    """Local JSON API settings."""
    host: str = "127.0.0.1"
    port: int = 8765


@dataclass
class NootConfig:
    """Complete noot configuration."""
    vault: VaultConfig
    attachments: AttachmentsConfig
    editor: EditorConfig
    notes: NotesConfig
    api: ApiConfig


def load_config(config_path: Path | None = None, vault_path: Path | None = None) -> NootConfig:
    """
    Load configuration from noot.toml.

    Search order:
    1. config_path (if provided)
    2. cwd/noot.toml
    3. vault_path/noot.toml

    Args:
        config_path: Explicit path to config file
        vault_path: Vault root path for fallback search

    Returns:
        NootConfig with resolved settings
    """
    toml_data: dict[str, Any] = {}

    search_paths = []
    if config_path:
        search_paths.append(config_path)
    search_paths.append(Path.cwd() / CONFIG_FILENAME)
    if vault_path:
        search_paths.append(vault_path / CONFIG_FILENAME)

    for path in search_paths:
        if path.exists():
            with open(path, "rb") as f:
                toml_data = tomllib.load(f)
            break

    vault_data = toml_data.get("vault", {})
    vault_root = Path(vault_data.get("root", vault_path or Path("./vault")))
    vault_config = VaultConfig(
        root=vault_root,
        db=Path(vault_data.get("db", vault_root / ".noot" / "index.sqlite")),
    )

    attachments_data = toml_data.get("attachments", {})
    attachments_config = AttachmentsConfig(
        root=Path(attachments_data.get("root", vault_root / "attachments")),
    )

    editor_data = toml_data.get("editor", {})
    editor_config = EditorConfig(
        inline_images=bool(editor_data.get("inline_images", True)),
        link_preview_length=int(editor_data.get("link_preview_length", 30)),
    )

    notes_data = toml_data.get("notes", {})
    notes_config = NotesConfig(
        auto_close_minutes=int(notes_data.get("auto_close_minutes", 30)),
    )

    api_data = toml_data.get("api", {})
    api_config = ApiConfig(
        host=str(api_data.get("host", "127.0.0.1")),
        port=int(api_data.get("port", 8765)),
    )

    return NootConfig(
        vault=vault_config,
        attachments=attachments_config,
        editor=editor_config,
        notes=notes_config,
        api=api_config,
    )
