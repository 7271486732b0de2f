"""
Model registry for embedsearch.

Ensures all SQLAlchemy models are imported and attached to ``Base.metadata``
before tables are created.
"""


def register_all_models():
    """Import all SQLAlchemy models so they are registered with SQLAlchemy."""
    from . import Base, PluginRecord

    return {
        "Base": Base,
        "PluginRecord": PluginRecord,
    }
