"""Plugin registry model.

One row per configured widget instance, keyed by ``(type, uid)``.
"""

from sqlalchemy import JSON, Column, String, Text, UniqueConstraint

from .base import BaseModel


class PluginRecord(BaseModel):
    """A configured plugin instance.

    Fields:
    - type: plugin discriminator (e.g., "ai-search")
    - uid: opaque identifier embedded in the host page markup
    - settings: public key/value map (theme, title, placeholder, submitText)
    - context: server-only document corpus, stored as JSON text. Legacy rows
      may hold free text; readers treat anything that is not a JSON array as
      an empty corpus.
    """

    __tablename__ = "plugin_records"

    type = Column(String(100), nullable=False, index=True)
    uid = Column(String(255), nullable=False, index=True)
    settings = Column(JSON, nullable=False, default=dict)
    context = Column(Text, nullable=True)

    __table_args__ = (UniqueConstraint("type", "uid", name="uq_plugin_records_type_uid"),)

    def __repr__(self) -> str:
        return f"<PluginRecord(type={self.type}, uid={self.uid})>"
