"""
Catalog sources
===============

Read-only providers of the static game catalog:

- class config: class id -> display config (colour, icon); only the ids
  matter to the engine
- template definitions: category -> list of quest definition records
- user defaults: starting values for the player profile

`PackagedCatalog` reads the YAML files shipped in `levelup/data/`.
`StaticCatalog` holds in-memory mappings (tests, embedding applications).

Definition record fields: ``title, description, type, class, base_xp,
base_gold, enabled, scaling, level1_requirements, level100_requirements,
requirement``. The camelCase spellings ``baseXP, baseGold,
level1Requirements, level100Requirements`` are accepted too. Requirement
fields may be string-encoded; they are parsed to integers at ingestion.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

import yaml

from levelup.core.exceptions import SeedingError
from levelup.core.logging.logger import get_logger
from levelup.database.models.enums import QuestType
from levelup.modules.shared.formulas import parse_requirement

logger = get_logger(__name__)

DATA_DIR = Path(__file__).resolve().parent.parent.parent / "data"

CLASS_CONFIG_FILE = "class_config.yaml"
TEMPLATES_FILE = "quest_templates.yaml"
USER_DEFAULTS_FILE = "user_defaults.yaml"


class CatalogSource(Protocol):
    """Contract the engine requires from the static catalog."""

    def class_config(self) -> Mapping[str, Mapping[str, Any]]: ...

    def template_definitions(self) -> Mapping[str, Sequence[Mapping[str, Any]]]: ...

    def user_defaults(self) -> Mapping[str, Any]: ...


def _field(record: Mapping[str, Any], name: str, alias: str) -> Any:
    """Read a record field by its snake_case name or its camelCase alias."""
    if name in record:
        return record[name]
    return record.get(alias)


@dataclass(frozen=True)
class TemplateDefinition:
    """A catalog record normalized for ingestion."""

    title: str
    description: str
    type: QuestType
    class_id: str
    base_xp: int
    base_gold: int
    enabled: bool
    scaling: bool
    level1_requirement_count: Optional[int]
    level100_requirement_count: Optional[int]
    requirement_count: int

    @property
    def identity(self) -> tuple[str, str, QuestType]:
        return (self.title, self.class_id, self.type)

    @classmethod
    def from_record(cls, record: Mapping[str, Any], category: str) -> "TemplateDefinition":
        """
        Normalize one raw definition record.

        Missing or non-numeric scaling anchors stay ``None`` (the flat count
        is used instead); a missing or non-numeric flat requirement becomes 1.

        Raises:
            ValueError: If title or type is missing or invalid
        """
        title = str(record.get("title") or "").strip()
        if not title:
            raise ValueError(f"template in category {category!r} has no title")

        quest_type = QuestType(record.get("type", QuestType.DAILY.value))
        flat = parse_requirement(record.get("requirement"))

        return cls(
            title=title,
            description=str(record.get("description") or ""),
            type=quest_type,
            class_id=str(record.get("class") or category),
            base_xp=int(_field(record, "base_xp", "baseXP") or 0),
            base_gold=int(_field(record, "base_gold", "baseGold") or 0),
            enabled=bool(record.get("enabled", True)),
            scaling=bool(record.get("scaling", False)),
            level1_requirement_count=parse_requirement(
                _field(record, "level1_requirements", "level1Requirements")
            ),
            level100_requirement_count=parse_requirement(
                _field(record, "level100_requirements", "level100Requirements")
            ),
            requirement_count=flat if flat is not None else 1,
        )


def iter_definitions(source: CatalogSource) -> List[TemplateDefinition]:
    """
    Flatten and normalize every definition in a catalog.

    Categories with no definitions are skipped. Malformed records are logged
    and skipped.
    """
    definitions: List[TemplateDefinition] = []
    for category, records in source.template_definitions().items():
        if not records:
            logger.debug("Skipping empty catalog category", extra={"category": category})
            continue
        for record in records:
            try:
                definitions.append(TemplateDefinition.from_record(record, category))
            except (ValueError, TypeError) as exc:
                logger.warning(
                    f"Skipping malformed catalog template: {exc}",
                    extra={"category": category, "record": dict(record)},
                )
    return definitions


class StaticCatalog:
    """In-memory catalog."""

    def __init__(
        self,
        class_config: Optional[Mapping[str, Mapping[str, Any]]] = None,
        templates: Optional[Mapping[str, Sequence[Mapping[str, Any]]]] = None,
        user_defaults: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._class_config = dict(class_config or {})
        self._templates = {k: list(v) for k, v in (templates or {}).items()}
        self._user_defaults = dict(user_defaults or {})

    def class_config(self) -> Mapping[str, Mapping[str, Any]]:
        return self._class_config

    def template_definitions(self) -> Mapping[str, Sequence[Mapping[str, Any]]]:
        return self._templates

    def user_defaults(self) -> Mapping[str, Any]:
        return self._user_defaults

    def add_templates(self, category: str, records: Sequence[Mapping[str, Any]]) -> None:
        """Append definitions to a category (simulates a catalog update)."""
        self._templates.setdefault(category, []).extend(records)


class PackagedCatalog:
    """
    Catalog read from YAML files.

    Files are loaded lazily on first access and cached.

    Raises:
        SeedingError: If a catalog file is missing or not valid YAML
    """

    def __init__(self, data_dir: Optional[Path] = None) -> None:
        self.data_dir = Path(data_dir) if data_dir is not None else DATA_DIR
        self._cache: Dict[str, Any] = {}

    def _load(self, filename: str) -> Any:
        if filename in self._cache:
            return self._cache[filename]

        path = self.data_dir / filename
        if not path.exists():
            raise SeedingError(f"catalog file not found: {path}")

        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise SeedingError(f"invalid YAML in catalog file {path}: {exc}") from exc

        if not isinstance(data, dict):
            raise SeedingError(f"catalog file {path} must contain a mapping")

        logger.debug("Loaded catalog file", extra={"file": str(path), "keys": len(data)})
        self._cache[filename] = data
        return data

    def class_config(self) -> Mapping[str, Mapping[str, Any]]:
        return self._load(CLASS_CONFIG_FILE)

    def template_definitions(self) -> Mapping[str, Sequence[Mapping[str, Any]]]:
        return {k: v or [] for k, v in self._load(TEMPLATES_FILE).items()}

    def user_defaults(self) -> Mapping[str, Any]:
        return self._load(USER_DEFAULTS_FILE)
