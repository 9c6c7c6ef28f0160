"""
Carnet Repository Contract.

Persistence boundary for extracted carnets. Storage backends implement
:class:`CarnetAduaneroRepository`; the extraction pipelines never depend
on it.

Author: ML Engineering Team
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from aduana_extraction.documents.carnet_aduanero import CarnetAduaneroData
from aduana_extraction.extraction.extraction_result import ExtractionResult


@dataclass
class CarnetAduanero:
    """
    A stored carnet.

    ``id``, ``created_at`` and ``updated_at`` are assigned by the
    repository; values set by callers are ignored on create.
    """
    numero_carnet: str
    nombre_completo: str
    rut: str
    fecha_emision: date
    fecha_vencimiento: Optional[date] = None
    resolucion: Optional[str] = None
    fecha_resolucion: Optional[date] = None
    codigo_agente: Optional[str] = None
    source_hash: Optional[str] = None
    file_name: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_result(cls, result: ExtractionResult[CarnetAduaneroData]) -> "CarnetAduanero":
        """
        Build an unsaved entity from a valid extraction result.

        Raises:
            ValueError: If the result is not valid.
        """
        if not result.is_valid:
            raise ValueError(f"Cannot store an invalid carnet: {'; '.join(result.warnings)}")

        record = result.record
        return cls(
            numero_carnet=record.numero_carnet,
            nombre_completo=record.nombre_completo,
            rut=record.rut,
            fecha_emision=record.fecha_emision,
            fecha_vencimiento=record.fecha_vencimiento,
            resolucion=record.resolucion,
            fecha_resolucion=record.fecha_resolucion,
            codigo_agente=record.codigo_agente,
            source_hash=result.source_hash,
            file_name=result.file_name or None,
        )

    def is_expired(self, today: Optional[date] = None) -> bool:
        if self.fecha_vencimiento is None:
            return False
        return self.fecha_vencimiento < (today or date.today())

    def days_until_expiry(self, today: Optional[date] = None) -> Optional[int]:
        if self.fecha_vencimiento is None:
            return None
        return (self.fecha_vencimiento - (today or date.today())).days


@dataclass
class Page:
    """One page of a listing."""
    items: List[CarnetAduanero] = field(default_factory=list)
    page: int = 1
    page_size: int = 20
    total: int = 0

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return (self.total + self.page_size - 1) // self.page_size

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


class CarnetAduaneroRepository(ABC):
    """
    Storage contract for carnets.

    Numbers are unique: :meth:`create` raises ``DuplicateRecordError``
    for a number already stored. Every other storage failure surfaces as
    ``RepositoryError``.
    """

    @abstractmethod
    def list(self, page: int = 1, page_size: int = 20, search: Optional[str] = None) -> Page:
        """
        List carnets, newest first.

        Args:
            page: 1-based page number.
            page_size: Items per page.
            search: Case-insensitive substring matched against number,
                    holder name and RUT.
        """

    @abstractmethod
    def get_by_id(self, carnet_id: int) -> Optional[CarnetAduanero]:
        ...

    @abstractmethod
    def get_by_number(self, numero_carnet: str) -> Optional[CarnetAduanero]:
        ...

    @abstractmethod
    def create(self, carnet: CarnetAduanero) -> CarnetAduanero:
        """Store a new carnet and return it with ``id`` and timestamps set."""

    @abstractmethod
    def update(self, carnet: CarnetAduanero) -> CarnetAduanero:
        """Overwrite the stored carnet with the same ``id``."""

    @abstractmethod
    def delete(self, carnet_id: int) -> bool:
        """Delete by id; False when nothing was deleted."""

    @abstractmethod
    def exists_by_number(self, numero_carnet: str) -> bool:
        ...

    @abstractmethod
    def count(self) -> int:
        ...

    @abstractmethod
    def statistics(self, today: Optional[date] = None) -> Dict[str, Any]:
        """
        Summary counts.

        Returns:
            Dictionary with ``total``, ``vigentes``, ``vencidos``,
            ``por_vencer`` (valid but expiring within the configured
            window), ``sin_vencimiento`` and ``generated_at``.
        """
