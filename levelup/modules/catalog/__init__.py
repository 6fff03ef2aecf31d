"""
Catalog Module
==============

Domain: quest template definitions

Sources:
- CatalogSource: contract for the static catalog
- PackagedCatalog: YAML catalog shipped with the package
- StaticCatalog: in-memory catalog

Services:
- QuestCatalogService: seeding, dedupe-merge sync and custom templates
"""

from .service import QuestCatalogService, QuestTemplateRepository, template_snapshot
from .source import (
    CatalogSource,
    PackagedCatalog,
    StaticCatalog,
    TemplateDefinition,
    iter_definitions,
)

__all__ = [
    "CatalogSource",
    "PackagedCatalog",
    "QuestCatalogService",
    "QuestTemplateRepository",
    "StaticCatalog",
    "TemplateDefinition",
    "iter_definitions",
    "template_snapshot",
]
