# note_store.py
# Description: Reads and writes the YAML front-matter of markdown notes in a vault
#
# Imports
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
#
# Third-Party Imports
import yaml
from loguru import logger
#
# Local Imports
from ..Utils.atomic_file_ops import atomic_write_text
#
########################################################################################################################
#
# Classes and Functions:

DEFAULT_OWNED_IDS_FIELD = "_time_entries"

_FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE)


class NoteNotFoundError(Exception):
    """The note path does not exist or lies outside the vault."""
    pass


@dataclass(frozen=True)
class Note:
    """A markdown note, identified by its path relative to the vault root."""
    path: Path

    @property
    def stem(self) -> str:
        return self.path.stem


def split_frontmatter(text: str) -> Tuple[Dict[str, Any], str]:
    """Split a markdown document into (front-matter mapping, body)."""
    match = _FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        data = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML front-matter: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Front-matter must be a mapping")
    return data, text[match.end():]


def join_frontmatter(frontmatter: Dict[str, Any], body: str) -> str:
    if not frontmatter:
        return body
    dumped = yaml.safe_dump(frontmatter, sort_keys=False, allow_unicode=True)
    return f"---\n{dumped}---\n{body}"


def _as_string_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None]
    return [str(value)]


class NoteStore:
    """File-backed store for the front-matter fields the engine reads and writes."""

    def __init__(self, vault_root: Union[str, Path], owned_ids_field: str = DEFAULT_OWNED_IDS_FIELD):
        self.vault_root = Path(vault_root).expanduser().resolve()
        self.owned_ids_field = owned_ids_field

    def get_note(self, path: Union[str, Path]) -> Note:
        """Resolve a path (relative to the vault, or absolute inside it) to a Note."""
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.vault_root / candidate
        candidate = candidate.resolve()
        try:
            relative = candidate.relative_to(self.vault_root)
        except ValueError:
            raise NoteNotFoundError(f"{path} is outside the vault {self.vault_root}")
        if not candidate.is_file():
            raise NoteNotFoundError(f"Note not found: {path}")
        return Note(path=relative)

    def absolute_path(self, note: Note) -> Path:
        return self.vault_root / note.path

    def read_frontmatter(self, note: Note) -> Dict[str, Any]:
        frontmatter, _ = split_frontmatter(self.absolute_path(note).read_text(encoding="utf-8"))
        return frontmatter

    def _update_frontmatter(self, note: Note, key: str, value: Any) -> None:
        file_path = self.absolute_path(note)
        frontmatter, body = split_frontmatter(file_path.read_text(encoding="utf-8"))
        frontmatter[key] = value
        atomic_write_text(file_path, join_frontmatter(frontmatter, body))

    def get_owned_ids(self, note: Note) -> List[str]:
        """Ids of the time entries owned by the note, as stored (decimal strings)."""
        return _as_string_list(self.read_frontmatter(note).get(self.owned_ids_field))

    def append_owned_id(self, note: Note, entry_id: int) -> None:
        owned = self.get_owned_ids(note)
        owned.append(str(entry_id))
        self._update_frontmatter(note, self.owned_ids_field, owned)
        logger.debug(f"Appended time entry {entry_id} to {note.path}")

    def replace_owned_ids(self, note: Note, entry_ids: Iterable[int]) -> None:
        # Ids are written as strings; large integers do not survive every front-matter reader.
        owned = [str(entry_id) for entry_id in entry_ids]
        self._update_frontmatter(note, self.owned_ids_field, owned)
        logger.debug(f"Replaced time entries of {note.path} with {owned}")

    def get_primary_name(self, note: Note) -> str:
        return note.stem

    def get_aliases_and_title(self, note: Note) -> List[str]:
        frontmatter = self.read_frontmatter(note)
        names = _as_string_list(frontmatter.get("aliases"))
        names.extend(_as_string_list(frontmatter.get("title")))
        return names

    def get_category(self, note: Note) -> Optional[str]:
        """Second path segment, when it is a folder (e.g. Areas/Writing/draft.md -> Writing)."""
        parts = note.path.parts
        if len(parts) < 3:
            return None
        return parts[1]

#
# End of note_store.py
########################################################################################################################
