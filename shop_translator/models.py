"""Data model shared by the extractor, the orchestrator and the job runner."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class TranslationUnit:
    """One translatable field of a translation request."""
    field_key: str
    source_text: str


@dataclass
class TranslationBatch:
    """Units sent to the provider in a single request."""
    units: List[TranslationUnit]
    language_code: str
    system_prompt: str

    def as_mapping(self) -> Dict[str, str]:
        return {unit.field_key: unit.source_text for unit in self.units}


@dataclass
class Language:
    id: str
    locale_code: Optional[str]
    name: str = ''


@dataclass
class Product:
    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    keywords: Optional[str] = None
    pack_unit: Optional[str] = None
    pack_unit_plural: Optional[str] = None
    product_number: Optional[str] = None
    custom_fields: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CmsSlot:
    id: str
    type: str
    config: Optional[Dict[str, Any]] = None


@dataclass
class CmsBlock:
    slots: Optional[List[CmsSlot]] = None


@dataclass
class CmsSection:
    blocks: Optional[List[CmsBlock]] = None


@dataclass
class CmsPage:
    id: str
    name: Optional[str] = None
    sections: Optional[List[CmsSection]] = None


@dataclass
class Snippet:
    id: str
    translation_key: str
    value: Optional[str]
    set_id: str


@dataclass
class SnippetSet:
    id: str
    iso: str
    name: str = ''


@dataclass
class SnippetFile:
    """A snippet JSON file found on disk."""
    path: str
    full_path: str
    filename: str
    language: str
    snippet_count: int
    size: int
    source: str


class EntityType(str, Enum):
    PRODUCT = 'product'
    CMS_PAGE = 'cms_page'
    SNIPPET_SET = 'snippet_set'


class JobStatus(str, Enum):
    PENDING = 'pending'
    PROCESSING = 'processing'
    COMPLETED = 'completed'
    FAILED = 'failed'


@dataclass
class TranslationJob:
    id: str
    type: EntityType
    entity_id: str
    status: JobStatus = JobStatus.PENDING
    target_language_ids: List[str] = field(default_factory=list)
    result: Optional[Dict[str, Any]] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def to_status_dict(self) -> Dict[str, Any]:
        """Read-only view used by the job status surface."""
        return {
            'id': self.id,
            'type': self.type.value,
            'entityId': self.entity_id,
            'status': self.status.value,
            'result': self.result,
            'startedAt': self.started_at.isoformat() if self.started_at else None,
            'finishedAt': self.finished_at.isoformat() if self.finished_at else None,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
