"""
Capability registry and router.

Every tool the server knows about is classified once here. Lookups for
names that are not registered fall through to the hybrid-eligible branch
so an unknown tool degrades instead of erroring; `validate` exists to
catch such gaps at startup and in tests.
"""

from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional

from drupal_mcp.core.modes.models import ExecutionPath


class CapabilityCategory(str, Enum):
    LIVE_ONLY = "live_only"
    DOCS_ONLY = "docs_only"
    HYBRID_ELIGIBLE = "hybrid_eligible"


LIVE_ONLY_TOOLS = (
    # Content
    "get_node", "create_node", "update_node", "delete_node", "list_nodes",
    "get_user", "create_user", "update_user", "delete_user", "list_users",
    "get_taxonomy_term", "create_taxonomy_term", "update_taxonomy_term",
    "delete_taxonomy_term", "list_taxonomy_terms",
    # Site administration
    "execute_query", "get_module_list", "enable_module", "disable_module",
    "get_configuration", "set_configuration", "clear_cache", "get_site_info",
)

DOCS_ONLY_TOOLS = (
    # api.drupal.org
    "search_drupal_functions", "search_drupal_classes", "search_drupal_hooks",
    "search_drupal_topics", "search_drupal_services", "search_drupal_all",
    "get_function_details", "get_class_details",
    # drupal.org contrib
    "search_contrib_modules", "search_contrib_themes", "get_module_details",
    "get_popular_modules",
    # Examples
    "search_code_examples", "get_example_by_title", "list_example_categories",
    "get_examples_by_category", "get_examples_by_tag",
    # Local analysis and scaffolding
    "analyze_drupal_file", "check_drupal_standards", "generate_module_skeleton",
    "get_module_template_info",
)

HYBRID_ELIGIBLE_TOOLS = (
    "analyze_module", "analyze_function", "analyze_site", "analyze_content_type",
)


def _build_registry() -> Dict[str, CapabilityCategory]:
    registry: Dict[str, CapabilityCategory] = {}
    for names, category in (
        (LIVE_ONLY_TOOLS, CapabilityCategory.LIVE_ONLY),
        (DOCS_ONLY_TOOLS, CapabilityCategory.DOCS_ONLY),
        (HYBRID_ELIGIBLE_TOOLS, CapabilityCategory.HYBRID_ELIGIBLE),
    ):
        for name in names:
            if name in registry:
                raise ValueError(f"Tool '{name}' classified twice ({registry[name].value}, {category.value})")
            registry[name] = category
    return registry


CAPABILITY_REGISTRY: Mapping[str, CapabilityCategory] = _build_registry()


class CapabilityRouter:
    """Classifies operations and picks the source that should serve them."""

    def __init__(self, registry: Optional[Mapping[str, CapabilityCategory]] = None):
        self.registry = dict(registry if registry is not None else CAPABILITY_REGISTRY)

    def classify(self, name: str) -> CapabilityCategory:
        return self.registry.get(name, CapabilityCategory.HYBRID_ELIGIBLE)

    def is_registered(self, name: str) -> bool:
        return name in self.registry

    def is_docs_capability(self, name: str) -> bool:
        """Can be served from documentation/static data."""
        return self.classify(name) is not CapabilityCategory.LIVE_ONLY

    def is_live_capability(self, name: str) -> bool:
        """Can be served from the live site."""
        return self.classify(name) is not CapabilityCategory.DOCS_ONLY

    def route(self, name: str, connected: bool) -> Optional[ExecutionPath]:
        """
        Pick the execution path for a tool given live connectivity.

        Live-only tools have no documentation fallback and return None
        while disconnected.
        """
        category = self.classify(name)

        if category is CapabilityCategory.LIVE_ONLY:
            return ExecutionPath.LIVE if connected else None

        if category is CapabilityCategory.DOCS_ONLY:
            return ExecutionPath.DOCS

        return ExecutionPath.HYBRID if connected else ExecutionPath.DOCS

    def validate(self, names: Iterable[str]) -> List[str]:
        """Return the names that are missing from the registry."""
        return sorted({name for name in names if name not in self.registry})

    def tools_in(self, category: CapabilityCategory) -> List[str]:
        return sorted(name for name, cat in self.registry.items() if cat is category)
