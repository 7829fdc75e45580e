"""Runtime wiring helper for CLI and API applications."""

from dataclasses import dataclass
from pathlib import Path

from .adapters.fs_storage import FsStorage
from .adapters.idgen import UuidGenerator
from .adapters.markdown_parser import MarkdownParser
from .adapters.reference_resolver import ReferenceResolver
from .adapters.sqlite_index import SQLiteIndex
from .adapters.yaml_codec import MarkdownNoteCodec, YamlFrontmatter
from .config import NootConfig, load_config
from .core.notebook import Notebook
from .core.vault import Vault


@dataclass
class Runtime:
    """Container for all wired components."""
    vault: Vault
    index: SQLiteIndex
    resolver: ReferenceResolver
    notebook: Notebook
    config: NootConfig


def build_runtime(
    vault_path: Path | None = None,
    db_path: Path | None = None,
    config_path: Path | None = None,
) -> Runtime:
    """Build and wire all components for a vault."""
    config = load_config(config_path=config_path, vault_path=vault_path)

    # explicit arguments win over config values
    if vault_path is None:
        vault_path = config.vault.root
    else:
        config.vault.root = vault_path
    if db_path is None:
        db_path = config.vault.db
    else:
        config.vault.db = db_path

    vault = Vault(FsStorage(vault_path), MarkdownParser(), MarkdownNoteCodec(YamlFrontmatter()))
    index = SQLiteIndex(db_path=db_path)
    resolver = ReferenceResolver(vault)
    notebook = Notebook(
        vault=vault,
        resolver=resolver,
        index=index,
        idgen=UuidGenerator(),
        attachments_root=config.attachments.root,
    )

    return Runtime(
        vault=vault,
        index=index,
        resolver=resolver,
        notebook=notebook,
        config=config,
    )
