"""Record store backed by a YAML file and per-run YAML history artifacts."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import yaml

from news_digest.core import (
    AllowedDomain,
    Category,
    DigestHistory,
    DigestSettings,
    RankedArticle,
    RecordStore,
    RunAction,
    Source,
    StoreError,
    Topic,
)


def categories_json(articles: list[RankedArticle]) -> str:
    """Distinct categories in first-seen order, as JSON."""
    return json.dumps(list(dict.fromkeys(a.category.value for a in articles)))


def articles_json(articles: list[RankedArticle]) -> str:
    return json.dumps([a.to_dict() for a in articles], ensure_ascii=False)


class YamlRecordStore(RecordStore):
    """Read configuration records from one YAML file, write history as artifacts.

    The store file holds ``settings``, ``sources``, ``topics`` and
    ``allowed_domains``. Each history record is saved as its own YAML file in
    ``history_dir``.
    """

    def __init__(self, store_file: Path, history_dir: Path) -> None:
        self.store_file = store_file
        self.history_dir = history_dir
        self._ensure_structure()

    def _ensure_structure(self) -> None:
        """Create the history directory."""
        self.history_dir.mkdir(parents=True, exist_ok=True)

    def _load(self) -> dict[str, Any]:
        if not self.store_file.exists():
            raise StoreError(f"Store file not found: {self.store_file}")
        try:
            with open(self.store_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise StoreError(f"Could not read store file {self.store_file}: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"Store file {self.store_file} must contain a mapping")
        return data

    async def list_sources(self) -> list[Source]:
        sources = []
        for index, raw in enumerate(self._load().get("sources") or [], 1):
            try:
                sources.append(Source(
                    id=int(raw.get("id", index)),
                    category=Category(str(raw["category"]).lower()),
                    url=str(raw["url"]).strip(),
                    name=str(raw["name"]).strip(),
                    is_active=bool(raw.get("is_active", True)),
                ))
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                raise StoreError(f"Invalid source entry {raw!r}: {e}") from e
        return sources

    async def list_topics(self) -> list[Topic]:
        topics = []
        for index, raw in enumerate(self._load().get("topics") or [], 1):
            try:
                topics.append(Topic(
                    id=int(raw.get("id", index)),
                    category=Category(str(raw["category"]).lower()),
                    topic=str(raw["topic"]).strip(),
                    is_active=bool(raw.get("is_active", True)),
                ))
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                raise StoreError(f"Invalid topic entry {raw!r}: {e}") from e
        return topics

    async def get_settings(self) -> Optional[DigestSettings]:
        raw = self._load().get("settings")
        if not raw:
            return None
        try:
            return DigestSettings(**raw)
        except (TypeError, ValueError) as e:
            raise StoreError(f"Invalid settings: {e}") from e

    async def list_allowed_domains(self) -> list[AllowedDomain]:
        domains = []
        for raw in self._load().get("allowed_domains") or []:
            try:
                if isinstance(raw, str):
                    domains.append(AllowedDomain(domain=raw))
                else:
                    domains.append(AllowedDomain(
                        domain=str(raw["domain"]),
                        is_active=bool(raw.get("is_active", True)),
                        id=raw.get("id"),
                    ))
            except (KeyError, ValueError, TypeError) as e:
                raise StoreError(f"Invalid allowed domain entry {raw!r}: {e}") from e
        return domains

    async def list_active_allowed_domains(self) -> list[str]:
        return [d.domain for d in await self.list_allowed_domains() if d.is_active]

    def _history_paths(self) -> list[Path]:
        return sorted(self.history_dir.glob("*.yaml"))

    @staticmethod
    def _read_history(path: Path) -> DigestHistory:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        run_type = data.get("run_type")
        return DigestHistory(
            id=int(data["id"]),
            generated_at=datetime.fromisoformat(data["generated_at"]),
            articles_count=int(data["articles_count"]),
            categories_json=data["categories_json"],
            articles_json=data["articles_json"],
            sent_successfully=bool(data["sent_successfully"]),
            run_type=RunAction(run_type) if run_type else None,
            error_message=data.get("error_message"),
        )

    def _all_history(self) -> list[DigestHistory]:
        records = []
        for path in self._history_paths():
            try:
                records.append(self._read_history(path))
            except (OSError, yaml.YAMLError, KeyError, ValueError, TypeError) as e:
                raise StoreError(f"Invalid history artifact {path.name}: {e}") from e
        records.sort(key=lambda r: (r.generated_at, r.id), reverse=True)
        return records

    async def get_last_successful_history(self) -> Optional[DigestHistory]:
        for record in self._all_history():
            if record.sent_successfully:
                return record
        return None

    async def list_history(self, limit: int = 20) -> list[DigestHistory]:
        return self._all_history()[:limit]

    async def create_history(
        self,
        articles: list[RankedArticle],
        sent_successfully: bool,
        run_type: RunAction,
        error_message: Optional[str] = None,
    ) -> DigestHistory:
        """Write one history artifact.

        ``articles_count`` is always derived from ``articles``.
        """
        existing = [int(p.name.split("_", 1)[0]) for p in self._history_paths() if p.name[0].isdigit()]
        record = DigestHistory(
            id=max(existing, default=0) + 1,
            generated_at=datetime.now(timezone.utc),
            articles_count=len(articles),
            categories_json=categories_json(articles),
            articles_json=articles_json(articles),
            sent_successfully=sent_successfully,
            run_type=run_type,
            error_message=error_message,
        )

        artifact = {
            "id": record.id,
            "generated_at": record.generated_at.isoformat(),
            "articles_count": record.articles_count,
            "categories_json": record.categories_json,
            "articles_json": record.articles_json,
            "sent_successfully": record.sent_successfully,
            "run_type": run_type.value,
            "error_message": error_message,
        }

        path = self.history_dir / f"{record.id:06d}_{record.generated_at:%Y%m%d_%H%M%S}.yaml"
        try:
            with open(path, "w", encoding="utf-8") as f:
                yaml.dump(artifact, f, allow_unicode=True, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise StoreError(f"Could not write history artifact {path.name}: {e}") from e

        return record
