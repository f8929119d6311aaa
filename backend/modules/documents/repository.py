"""
Document repository for database access.

Encapsulates all Supabase queries for document-related tables:
- doc_classifications (detected type, one row per doc hash)
- doc_type_overrides (per principal, keyed puid_docHash)
- doc_hashes (ledger of analyzed documents, kept forever)
"""

from datetime import datetime, timezone
from typing import Any, Optional

from shared.repository import BaseRepository
from modules.entitlements.models import Tier

from .models import DocumentTypeDetection, DocumentTypeOverride, EffectiveType


def override_id(puid: str, doc_hash: str) -> str:
    """Row key of a type override: puid_docHash."""
    return f"{puid}_{doc_hash}"


class DocumentRepository(BaseRepository[DocumentTypeDetection]):
    """
    Repository for document type data.

    Note: This repository does NOT perform authorization checks.
    Overrides are always looked up by the caller's own puid.
    """

    # -------------------------------------------------------------------------
    # Detected types
    # -------------------------------------------------------------------------

    def save_classification(
        self,
        doc_hash: str,
        detection: DocumentTypeDetection,
        tier: Tier,
    ) -> None:
        self._db.table("doc_classifications").upsert(
            {
                "doc_hash": doc_hash,
                "intake_category": detection.intake_category.value,
                "type_id": detection.type_id,
                "confidence": detection.confidence,
                "reasons": [r.model_dump() for r in detection.reasons],
                "tier": tier.value,
                "model": detection.model,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            },
            on_conflict="doc_hash",
        ).execute()

    def get_classification(self, doc_hash: str) -> Optional[DocumentTypeDetection]:
        result = self._db.table("doc_classifications").select("*").eq(
            "doc_hash", doc_hash
        ).execute()

        if not result.data:
            return None
        return self._map_to_detection(result.data[0])

    # -------------------------------------------------------------------------
    # Overrides
    # -------------------------------------------------------------------------

    def save_override(self, override: DocumentTypeOverride) -> None:
        self._db.table("doc_type_overrides").upsert(
            {
                "id": override_id(override.puid, override.doc_hash),
                "puid": override.puid,
                "uid": override.uid,
                "doc_hash": override.doc_hash,
                "type_id": override.type_id,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            },
            on_conflict="id",
        ).execute()

    def get_override(self, puid: str, doc_hash: str) -> Optional[str]:
        result = self._db.table("doc_type_overrides").select("type_id").eq(
            "id", override_id(puid, doc_hash)
        ).execute()

        if not result.data:
            return None
        return result.data[0].get("type_id") or None

    def get_effective_type(self, puid: str, doc_hash: str) -> EffectiveType:
        return EffectiveType(
            override_type_id=self.get_override(puid, doc_hash),
            detected=self.get_classification(doc_hash),
        )

    # -------------------------------------------------------------------------
    # Doc hash ledger
    # -------------------------------------------------------------------------

    def record_doc_hash(self, doc_hash: str, puid: str) -> None:
        self._db.table("doc_hashes").upsert(
            {
                "doc_hash": doc_hash,
                "last_seen_at": datetime.now(timezone.utc).isoformat(),
                "last_seen_by_puid": puid,
            },
            on_conflict="doc_hash",
        ).execute()

    def _map_to_detection(self, row: dict[str, Any]) -> DocumentTypeDetection:
        return DocumentTypeDetection(
            intake_category=row["intake_category"],
            type_id=row["type_id"],
            confidence=row.get("confidence") or 0.0,
            reasons=row.get("reasons") or [],
            model=row.get("model") or "heuristic-v1",
            tier=row.get("tier"),
            updated_at=self._parse_timestamp(row.get("updated_at")),
        )


class InMemoryDocumentRepository:
    """
    Document type data kept in dicts.

    For testing and development. Use DocumentRepository for production.
    """

    def __init__(self) -> None:
        self._classifications: dict[str, DocumentTypeDetection] = {}
        self._overrides: dict[str, DocumentTypeOverride] = {}
        self._doc_hashes: dict[str, dict[str, Any]] = {}

    def save_classification(
        self,
        doc_hash: str,
        detection: DocumentTypeDetection,
        tier: Tier,
    ) -> None:
        self._classifications[doc_hash] = detection.model_copy(
            update={"tier": tier, "updated_at": datetime.now(timezone.utc)}
        )

    def get_classification(self, doc_hash: str) -> Optional[DocumentTypeDetection]:
        return self._classifications.get(doc_hash)

    def save_override(self, override: DocumentTypeOverride) -> None:
        self._overrides[override_id(override.puid, override.doc_hash)] = override.model_copy(
            update={"updated_at": datetime.now(timezone.utc)}
        )

    def get_override(self, puid: str, doc_hash: str) -> Optional[str]:
        override = self._overrides.get(override_id(puid, doc_hash))
        return override.type_id if override else None

    def get_effective_type(self, puid: str, doc_hash: str) -> EffectiveType:
        return EffectiveType(
            override_type_id=self.get_override(puid, doc_hash),
            detected=self.get_classification(doc_hash),
        )

    def record_doc_hash(self, doc_hash: str, puid: str) -> None:
        self._doc_hashes[doc_hash] = {
            "last_seen_at": datetime.now(timezone.utc),
            "last_seen_by_puid": puid,
        }

    def get_doc_hash_record(self, doc_hash: str) -> Optional[dict[str, Any]]:
        """Ledger entry for a doc hash (test inspection)."""
        return self._doc_hashes.get(doc_hash)
