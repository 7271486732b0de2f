"""Demo plugin records for local development.

Enabled with ``EMBEDSEARCH_SEED_DEMO_PLUGINS=true``; only runs when no record
of the configured plugin type exists yet.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import get_settings_instance
from ..core.logging import get_logger
from ..schemas.plugin import PluginRecordCreate
from .plugin_registry_service import PluginRegistryService

logger = get_logger(__name__)

SAMPLE_CORPUS: list[dict[str, Any]] = [
    {
        "title": "Advanced Cancer Treatment Options",
        "description": (
            "Comprehensive guide to modern cancer treatment approaches including immunotherapy, "
            "targeted therapy, and precision medicine"
        ),
        "url": "https://medical-education.com/cancer-treatment-guide",
        "tags": ["cancer", "treatment", "immunotherapy", "oncology", "precision-medicine"],
    },
    {
        "title": "CME: Cardiovascular Disease Prevention",
        "description": (
            "Continuing Medical Education course covering prevention strategies for cardiovascular "
            "disease in primary care"
        ),
        "url": "https://cme-provider.com/cardio-prevention",
        "tags": ["cardiovascular", "prevention", "cme", "primary-care", "heart-disease"],
    },
    {
        "title": "Diabetes Management in Clinical Practice",
        "description": (
            "Evidence-based approaches to diabetes management including medication selection and "
            "lifestyle interventions"
        ),
        "url": "https://medical-education.com/diabetes-management",
        "tags": ["diabetes", "management", "clinical-practice", "medication", "lifestyle"],
    },
]

DEMO_PLUGINS: list[dict[str, Any]] = [
    {
        "uid": "test-uid-001",
        "settings": {
            "theme": "default",
            "placeholder": "Search in CME program",
            "title": "AI Search",
            "submitText": "Search",
        },
    },
    {
        "uid": "test-uid-002",
        "settings": {
            "theme": "dark",
            "placeholder": "Find medical content...",
            "title": "Medical Search",
            "submitText": "Find Results",
        },
    },
    {
        "uid": "test-uid-003",
        "settings": {"theme": "compact", "placeholder": "Quick search", "title": "Quick Search", "submitText": "Go"},
    },
    {
        "uid": "user-123",
        "settings": {
            "theme": "professional",
            "placeholder": "Search CME activities and resources",
            "title": "Professional Search",
            "submitText": "Search CME",
        },
    },
    {
        "uid": "search-456",
        "settings": {
            "theme": "simple",
            "placeholder": "Enter your search query",
            "title": "Search",
            "submitText": "Submit",
        },
    },
]


async def seed_demo_plugins(session: AsyncSession, plugin_type: str | None = None) -> int:
    """Insert the demo plugin records. Returns the number of records created."""
    plugin_type = plugin_type or get_settings_instance().plugin_type
    registry = PluginRegistryService(session)

    if await registry.count_records(plugin_type):
        logger.debug("Demo plugins already present, skipping seed", extra={"plugin_type": plugin_type})
        return 0

    for demo in DEMO_PLUGINS:
        await registry.create_record(
            PluginRecordCreate(
                type=plugin_type,
                uid=demo["uid"],
                settings=demo["settings"],
                context=SAMPLE_CORPUS,
            )
        )

    logger.info("Seeded demo plugins", extra={"plugin_type": plugin_type, "count": len(DEMO_PLUGINS)})
    return len(DEMO_PLUGINS)
