"""
SQLAlchemy Carnet Repository.

Reference implementation of :class:`CarnetAduaneroRepository` on the
SQLAlchemy ORM. SQLite is used by default (``paths.database``); any
SQLAlchemy URL can be configured under ``repository.url``.

Features:
    - Automatic schema creation
    - Unique carnet numbers (duplicates raise ``DuplicateRecordError``)
    - One transaction per operation
    - Paged, searchable listing and expiry statistics

Author: ML Engineering Team
"""

from contextlib import contextmanager
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import Date, DateTime, Integer, String, create_engine, func, or_, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from config import get_config
from aduana_extraction.utils.logger import get_logger
from aduana_extraction.utils.helpers import ensure_directory
from aduana_extraction.utils.exceptions import (
    DocumentExtractionError,
    DuplicateRecordError,
    RepositoryError,
)
from .base import CarnetAduanero, CarnetAduaneroRepository, Page

# Initialize module logger
logger = get_logger(__name__)

# Entity attributes stored as-is
_COLUMNS = (
    "numero_carnet",
    "nombre_completo",
    "rut",
    "fecha_emision",
    "fecha_vencimiento",
    "resolucion",
    "fecha_resolucion",
    "codigo_agente",
    "source_hash",
    "file_name",
)


def _utcnow() -> datetime:
    # SQLite drops tzinfo; store naive UTC everywhere
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Declarative base for the repository tables."""
    pass


class CarnetRow(Base):
    __tablename__ = "carnets_aduaneros"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    numero_carnet: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    nombre_completo: Mapped[str] = mapped_column(String(200))
    rut: Mapped[str] = mapped_column(String(16), index=True)
    fecha_emision: Mapped[date] = mapped_column(Date)
    fecha_vencimiento: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    resolucion: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    fecha_resolucion: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    codigo_agente: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    source_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    file_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime)
    updated_at: Mapped[datetime] = mapped_column(DateTime)


class SQLAlchemyCarnetRepository(CarnetAduaneroRepository):
    """
    Stores carnets in a relational database.

    Attributes:
        engine: SQLAlchemy engine in use.
        max_page_size: Upper bound applied to ``page_size``.
        expiring_window_days: Window for the ``por_vencer`` statistic.

    Example:
        >>> repo = SQLAlchemyCarnetRepository("sqlite:///carnets.db")
        >>> saved = repo.create(CarnetAduanero.from_result(result))
        >>> repo.get_by_number(saved.numero_carnet).id == saved.id
        True
    """

    def __init__(
        self,
        url: Optional[str] = None,
        engine: Optional[Engine] = None,
        echo: Optional[bool] = None
    ) -> None:
        """
        Initialize the repository and create its table if missing.

        Args:
            url: SQLAlchemy database URL. If None, uses configuration.
            engine: Ready-made engine; takes precedence over ``url``.
            echo: Log every SQL statement. If None, uses configuration.
        """
        if engine is None:
            url = url or self._default_url()
            echo = get_config("repository.echo", False) if echo is None else echo
            engine = create_engine(url, echo=echo, future=True)

        self.engine = engine
        self.max_page_size = int(get_config("repository.max_page_size", 100))
        self.expiring_window_days = int(get_config("repository.expiring_window_days", 30))
        self._session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

        try:
            Base.metadata.create_all(engine)
        except SQLAlchemyError as e:
            raise RepositoryError("create tables", str(e)) from e

        logger.info(f"SQLAlchemyCarnetRepository initialized (db: {engine.url})")

    @staticmethod
    def _default_url() -> str:
        configured = get_config("repository.url")
        if configured:
            return configured

        db_path = Path(get_config("paths.database", "data/carnets.db"))
        ensure_directory(db_path.parent)
        return f"sqlite:///{db_path}"

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except DocumentExtractionError:
            session.rollback()
            raise
        except SQLAlchemyError as e:
            session.rollback()
            raise RepositoryError(operation, str(e)) from e
        finally:
            session.close()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list(self, page: int = 1, page_size: int = 20, search: Optional[str] = None) -> Page:
        page = max(1, page)
        page_size = min(max(1, page_size), self.max_page_size)

        query = select(CarnetRow)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(or_(
                CarnetRow.numero_carnet.ilike(pattern),
                CarnetRow.nombre_completo.ilike(pattern),
                CarnetRow.rut.ilike(pattern),
            ))

        with self._session("list") as session:
            total = session.scalar(select(func.count()).select_from(query.subquery()))
            rows = session.scalars(
                query.order_by(CarnetRow.created_at.desc(), CarnetRow.id.desc())
                .offset((page - 1) * page_size)
                .limit(page_size)
            ).all()
            items = [self._to_entity(row) for row in rows]

        return Page(items=items, page=page, page_size=page_size, total=total or 0)

    def get_by_id(self, carnet_id: int) -> Optional[CarnetAduanero]:
        with self._session("get_by_id") as session:
            row = session.get(CarnetRow, carnet_id)
            return self._to_entity(row) if row else None

    def get_by_number(self, numero_carnet: str) -> Optional[CarnetAduanero]:
        with self._session("get_by_number") as session:
            row = session.scalars(
                select(CarnetRow).where(CarnetRow.numero_carnet == numero_carnet)
            ).first()
            return self._to_entity(row) if row else None

    def exists_by_number(self, numero_carnet: str) -> bool:
        with self._session("exists_by_number") as session:
            return self._number_taken(session, numero_carnet)

    def count(self) -> int:
        with self._session("count") as session:
            return session.scalar(select(func.count(CarnetRow.id))) or 0

    def statistics(self, today: Optional[date] = None) -> Dict[str, Any]:
        today = today or date.today()
        horizon = today + timedelta(days=self.expiring_window_days)
        expiry = CarnetRow.fecha_vencimiento

        with self._session("statistics") as session:
            def count_where(*conditions) -> int:
                return session.scalar(select(func.count(CarnetRow.id)).where(*conditions)) or 0

            total = count_where()
            vencidos = count_where(expiry.is_not(None), expiry < today)
            por_vencer = count_where(expiry.is_not(None), expiry >= today, expiry <= horizon)
            sin_vencimiento = count_where(expiry.is_(None))

        return {
            "total": total,
            "vigentes": total - vencidos,
            "vencidos": vencidos,
            "por_vencer": por_vencer,
            "sin_vencimiento": sin_vencimiento,
            "generated_at": datetime.now(timezone.utc).isoformat(),
        }

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def create(self, carnet: CarnetAduanero) -> CarnetAduanero:
        """
        Insert a carnet.

        Raises:
            DuplicateRecordError: If the number is already stored.
            RepositoryError: If the insert fails.
        """
        with self._session("create") as session:
            if self._number_taken(session, carnet.numero_carnet):
                raise DuplicateRecordError(carnet.numero_carnet)

            now = _utcnow()
            row = CarnetRow(**{name: getattr(carnet, name) for name in _COLUMNS})
            row.created_at = now
            row.updated_at = now
            session.add(row)
            try:
                session.flush()
            except IntegrityError as e:
                raise DuplicateRecordError(carnet.numero_carnet) from e

            logger.debug(f"Stored carnet {row.numero_carnet} (id={row.id})")
            return self._to_entity(row)

    def update(self, carnet: CarnetAduanero) -> CarnetAduanero:
        """
        Overwrite a stored carnet; ``created_at`` is preserved.

        Raises:
            RepositoryError: If ``carnet.id`` is not stored.
            DuplicateRecordError: If the new number belongs to another carnet.
        """
        if carnet.id is None:
            raise RepositoryError("update", "carnet has no id")

        with self._session("update") as session:
            row = session.get(CarnetRow, carnet.id)
            if row is None:
                raise RepositoryError("update", f"no carnet with id {carnet.id}")
            if carnet.numero_carnet != row.numero_carnet and \
                    self._number_taken(session, carnet.numero_carnet):
                raise DuplicateRecordError(carnet.numero_carnet, operation="update")

            for name in _COLUMNS:
                setattr(row, name, getattr(carnet, name))
            row.updated_at = _utcnow()
            session.flush()

            logger.debug(f"Updated carnet {row.numero_carnet} (id={row.id})")
            return self._to_entity(row)

    def delete(self, carnet_id: int) -> bool:
        with self._session("delete") as session:
            row = session.get(CarnetRow, carnet_id)
            if row is None:
                return False
            session.delete(row)

        logger.debug(f"Deleted carnet id={carnet_id}")
        return True

    # -------------------------------------------------------------------------
    # Mapping
    # -------------------------------------------------------------------------

    @staticmethod
    def _number_taken(session: Session, numero_carnet: str) -> bool:
        return session.scalar(
            select(CarnetRow.id).where(CarnetRow.numero_carnet == numero_carnet).limit(1)
        ) is not None

    @staticmethod
    def _to_entity(row: CarnetRow) -> CarnetAduanero:
        return CarnetAduanero(
            id=row.id,
            created_at=row.created_at,
            updated_at=row.updated_at,
            **{name: getattr(row, name) for name in _COLUMNS}
        )
