# ============================================================================
# src/medical_structuring/core/resource_store.py
# ============================================================================
"""
Resource Store

Persists source documents, person profiles, subjects and converted FHIR
resources to SQLite. Raw sqlite3 with JSON for resource bodies; every call
opens its own connection so the store can be shared across threads.

Subjects are unique per person: ensure_subject() relies on a UNIQUE
constraint plus INSERT OR IGNORE, so concurrent callers converge on one row.
"""

import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from ..config.base_config import base_settings
from .context.enums import LINKED_RESOURCE_KINDS
from ..utils.exceptions import DocumentNotFoundError, StorageError

logger = logging.getLogger(__name__)

STATUS_COMPLETED = "completed"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ResourceStore:
    """
    SQLite-backed store for source documents and FHIR resources.
    """

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path or base_settings.RESOURCE_DB_PATH)
        self._init_database()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """One connection per call; commits on success, wraps sqlite errors."""
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=30)
        except sqlite3.Error as e:
            raise StorageError(f"Could not open resource store {self.db_path}: {e}") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(f"Resource store operation failed: {e}") from e
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------
    def _init_database(self):
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            cur = conn.cursor()

            cur.execute("""
                CREATE TABLE IF NOT EXISTS source_documents (
                    id              TEXT PRIMARY KEY,
                    person_id       TEXT NOT NULL,
                    status          TEXT NOT NULL DEFAULT 'completed',
                    extracted_text  TEXT,
                    created_at      TEXT NOT NULL
                )
            """)

            cur.execute("""
                CREATE TABLE IF NOT EXISTS profiles (
                    person_id       TEXT PRIMARY KEY,
                    profile_json    TEXT NOT NULL,
                    updated_at      TEXT NOT NULL
                )
            """)

            cur.execute("""
                CREATE TABLE IF NOT EXISTS subjects (
                    person_id       TEXT NOT NULL UNIQUE,
                    subject_id      TEXT NOT NULL,
                    resource_json   TEXT NOT NULL,
                    created_at      TEXT NOT NULL
                )
            """)

            cur.execute("""
                CREATE TABLE IF NOT EXISTS resources (
                    resource_id         TEXT PRIMARY KEY,
                    person_id           TEXT NOT NULL,
                    kind                TEXT NOT NULL,
                    source_document_id  TEXT,
                    resource_json       TEXT NOT NULL,
                    created_at          TEXT NOT NULL
                )
            """)

            cur.execute("""
                CREATE INDEX IF NOT EXISTS idx_documents_status
                ON source_documents (status, created_at)
            """)
            cur.execute("""
                CREATE INDEX IF NOT EXISTS idx_resources_source
                ON resources (source_document_id, kind)
            """)
            cur.execute("""
                CREATE INDEX IF NOT EXISTS idx_resources_person
                ON resources (person_id)
            """)
        logger.info(f"Resource store initialized: {self.db_path}")

    # ------------------------------------------------------------------
    # Source documents
    # ------------------------------------------------------------------
    def add_document(
        self,
        person_id: str,
        extracted_text: Optional[str],
        status: str = STATUS_COMPLETED,
        document_id: Optional[str] = None,
    ) -> str:
        """Register a source document and return its id."""
        document_id = document_id or str(uuid.uuid4())
        with self._connect() as conn:
            conn.execute("""
                INSERT OR REPLACE INTO source_documents
                    (id, person_id, status, extracted_text, created_at)
                VALUES (?, ?, ?, ?, ?)
            """, (document_id, person_id, status, extracted_text, _now()))
        logger.info(f"Saved source document {document_id} for person {person_id}")
        return document_id

    def get_document(self, document_id: str) -> Dict[str, Any]:
        """Retrieve a single source document by id."""
        with self._connect() as conn:
            row = conn.execute("""
                SELECT id, person_id, status, extracted_text, created_at
                FROM source_documents WHERE id = ?
            """, (document_id,)).fetchone()
        if row is None:
            raise DocumentNotFoundError(document_id)
        return self._document_row(row)

    def list_completed_documents(
        self, limit: int, person_id: Optional[str] = None, unlinked_only: bool = False
    ) -> List[Dict[str, Any]]:
        """
        Completed documents with extracted text, oldest first.

        Args:
            limit: Max rows to return
            person_id: Restrict to one person
            unlinked_only: Skip documents that already have a linked resource
                (applied before the limit)
        """
        query = """
            SELECT id, person_id, status, extracted_text, created_at
            FROM source_documents
            WHERE status = ? AND extracted_text IS NOT NULL
        """
        params: list = [STATUS_COMPLETED]
        if person_id:
            query += " AND person_id = ?"
            params.append(person_id)
        if unlinked_only:
            kinds = [kind.value for kind in LINKED_RESOURCE_KINDS]
            placeholders = ", ".join("?" for _ in kinds)
            query += f"""
                AND NOT EXISTS (
                    SELECT 1 FROM resources r
                    WHERE r.source_document_id = source_documents.id
                    AND r.kind IN ({placeholders})
                )
            """
            params.extend(kinds)
        query += " ORDER BY created_at, id LIMIT ?"
        params.append(limit)

        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._document_row(row) for row in rows]

    def _document_row(self, row: tuple) -> Dict[str, Any]:
        return {
            "id": row[0],
            "person_id": row[1],
            "status": row[2],
            "extracted_text": row[3],
            "created_at": row[4],
        }

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------
    def save_profile(self, person_id: str, profile: Dict[str, Any]) -> None:
        with self._connect() as conn:
            conn.execute("""
                INSERT OR REPLACE INTO profiles (person_id, profile_json, updated_at)
                VALUES (?, ?, ?)
            """, (person_id, json.dumps(profile, default=str), _now()))

    def get_profile(self, person_id: str) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT profile_json FROM profiles WHERE person_id = ?", (person_id,)
            ).fetchone()
        if row:
            return json.loads(row[0])
        return None

    # ------------------------------------------------------------------
    # Subjects
    # ------------------------------------------------------------------
    def ensure_subject(
        self,
        person_id: str,
        build_subject: Callable[[str], Dict[str, Any]],
        subject_id: str,
    ) -> str:
        """
        Return the subject id for a person, creating the Subject once.

        Args:
            person_id: Upstream person id
            build_subject: Called with the candidate subject id, returns the
                Patient resource JSON to store
            subject_id: Candidate id used only if no subject exists yet

        Returns:
            The stored subject id (an existing one wins)
        """
        existing = self.get_subject_id(person_id)
        if existing:
            return existing

        resource = build_subject(subject_id)
        with self._connect() as conn:
            cur = conn.execute("""
                INSERT OR IGNORE INTO subjects (person_id, subject_id, resource_json, created_at)
                VALUES (?, ?, ?, ?)
            """, (person_id, subject_id, json.dumps(resource, default=str), _now()))
            created = cur.rowcount == 1
            row = conn.execute(
                "SELECT subject_id FROM subjects WHERE person_id = ?", (person_id,)
            ).fetchone()

        if created:
            logger.info(f"Created subject {subject_id} for person {person_id}")
        return row[0]

    def get_subject_id(self, person_id: str) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT subject_id FROM subjects WHERE person_id = ?", (person_id,)
            ).fetchone()
        return row[0] if row else None

    def get_subject(self, person_id: str) -> Optional[Dict[str, Any]]:
        """Stored Patient resource JSON for a person."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT resource_json FROM subjects WHERE person_id = ?", (person_id,)
            ).fetchone()
        return json.loads(row[0]) if row else None

    def count_subjects(self, person_id: Optional[str] = None) -> int:
        query = "SELECT COUNT(*) FROM subjects"
        params: list = []
        if person_id:
            query += " WHERE person_id = ?"
            params.append(person_id)
        with self._connect() as conn:
            return conn.execute(query, params).fetchone()[0]

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------
    def save_resources(self, person_id: str, resources: Iterable[Any]) -> int:
        """
        Persist converted resources in one transaction.

        Args:
            person_id: Owner of the resources
            resources: ConvertedResource items

        Returns:
            Number of rows written
        """
        rows = [
            (
                resource.resource_id,
                person_id,
                resource.kind.value,
                resource.source_document_id,
                json.dumps(resource.to_dict(), default=str),
                _now(),
            )
            for resource in resources
        ]
        with self._connect() as conn:
            conn.executemany("""
                INSERT OR REPLACE INTO resources
                    (resource_id, person_id, kind, source_document_id, resource_json, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
            """, rows)
        logger.debug(f"Saved {len(rows)} resources for person {person_id}")
        return len(rows)

    def has_linked_resources(self, document_id: str) -> bool:
        """True when an Observation, MedicationRequest or DiagnosticReport exists for the document."""
        kinds = [kind.value for kind in LINKED_RESOURCE_KINDS]
        placeholders = ", ".join("?" for _ in kinds)
        with self._connect() as conn:
            row = conn.execute(f"""
                SELECT 1 FROM resources
                WHERE source_document_id = ? AND kind IN ({placeholders})
                LIMIT 1
            """, [document_id, *kinds]).fetchone()
        return row is not None

    def list_resources(
        self,
        person_id: Optional[str] = None,
        kind: Optional[str] = None,
        source_document_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Stored resource JSON, optionally filtered."""
        query = "SELECT resource_json FROM resources WHERE 1=1"
        params: list = []
        if person_id:
            query += " AND person_id = ?"
            params.append(person_id)
        if kind:
            query += " AND kind = ?"
            params.append(kind)
        if source_document_id:
            query += " AND source_document_id = ?"
            params.append(source_document_id)
        query += " ORDER BY created_at, resource_id"

        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [json.loads(row[0]) for row in rows]

    def count_resources(self, kind: Optional[str] = None, source_document_id: Optional[str] = None) -> int:
        query = "SELECT COUNT(*) FROM resources WHERE 1=1"
        params: list = []
        if kind:
            query += " AND kind = ?"
            params.append(kind)
        if source_document_id:
            query += " AND source_document_id = ?"
            params.append(source_document_id)
        with self._connect() as conn:
            return conn.execute(query, params).fetchone()[0]
