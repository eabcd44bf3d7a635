"""Record store adapters."""

from news_digest.adapters.storage.yaml_store import YamlRecordStore

__all__ = ["YamlRecordStore"]
