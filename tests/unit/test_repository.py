from dataclasses import replace
from datetime import date

import pytest

from config import ConfigurationManager
from aduana_extraction.documents import CarnetAduaneroPipeline
from aduana_extraction.repository import CarnetAduanero, Page, SQLAlchemyCarnetRepository
from aduana_extraction.utils.exceptions import DuplicateRecordError, RepositoryError


@pytest.fixture()
def repo(tmp_path) -> SQLAlchemyCarnetRepository:
    return SQLAlchemyCarnetRepository(f"sqlite:///{tmp_path / 'carnets.db'}")


def make_carnet(numero: str, nombre: str = "JUAN PEREZ", rut: str = "12.345.678-5",
                vencimiento: date = None) -> CarnetAduanero:
    return CarnetAduanero(
        numero_carnet=numero,
        nombre_completo=nombre,
        rut=rut,
        fecha_emision=date(2024, 3, 15),
        fecha_vencimiento=vencimiento,
    )


class TestCarnetAduanero:
    def test_from_valid_result(self, carnet_text: str) -> None:
        result = CarnetAduaneroPipeline().process_raw_text(carnet_text, "carnet.txt")

        carnet = CarnetAduanero.from_result(result)

        assert carnet.numero_carnet == "12345-AB"
        assert carnet.fecha_vencimiento == date(2027, 3, 15)
        assert carnet.source_hash == result.source_hash
        assert carnet.file_name == "carnet.txt"
        assert carnet.id is None

    def test_from_invalid_result(self) -> None:
        result = CarnetAduaneroPipeline().process_raw_text("N° de Carné: 12345-AB")

        with pytest.raises(ValueError, match="invalid carnet"):
            CarnetAduanero.from_result(result)

    def test_expiry(self) -> None:
        carnet = make_carnet("1", vencimiento=date(2024, 6, 1))

        assert carnet.is_expired(today=date(2024, 6, 2))
        assert not carnet.is_expired(today=date(2024, 6, 1))
        assert carnet.days_until_expiry(today=date(2024, 5, 22)) == 10
        assert not make_carnet("2").is_expired()
        assert make_carnet("2").days_until_expiry() is None


class TestCrud:
    def test_create_assigns_id_and_timestamps(self, repo: SQLAlchemyCarnetRepository) -> None:
        saved = repo.create(make_carnet("12345-AB"))

        assert saved.id is not None
        assert saved.created_at is not None
        assert saved.updated_at == saved.created_at
        assert repo.get_by_id(saved.id) == saved
        assert repo.get_by_number("12345-AB") == saved

    def test_lookups_on_missing(self, repo: SQLAlchemyCarnetRepository) -> None:
        assert repo.get_by_id(999) is None
        assert repo.get_by_number("NOPE") is None
        assert not repo.exists_by_number("NOPE")

    def test_duplicate_number(self, repo: SQLAlchemyCarnetRepository) -> None:
        repo.create(make_carnet("12345-AB"))

        with pytest.raises(DuplicateRecordError) as exc_info:
            repo.create(make_carnet("12345-AB", nombre="OTRA PERSONA"))

        assert exc_info.value.number == "12345-AB"
        assert repo.count() == 1

    def test_update(self, repo: SQLAlchemyCarnetRepository) -> None:
        saved = repo.create(make_carnet("12345-AB"))

        updated = repo.update(replace(saved, nombre_completo="JUAN A. PEREZ", codigo_agente="A123"))

        assert updated.nombre_completo == "JUAN A. PEREZ"
        assert updated.created_at == saved.created_at
        assert updated.updated_at >= saved.updated_at
        assert repo.get_by_id(saved.id).codigo_agente == "A123"

    def test_update_to_taken_number(self, repo: SQLAlchemyCarnetRepository) -> None:
        repo.create(make_carnet("AAA-1"))
        second = repo.create(make_carnet("BBB-2"))

        with pytest.raises(DuplicateRecordError):
            repo.update(replace(second, numero_carnet="AAA-1"))

        assert repo.get_by_id(second.id).numero_carnet == "BBB-2"

    def test_update_unknown(self, repo: SQLAlchemyCarnetRepository) -> None:
        with pytest.raises(RepositoryError):
            repo.update(make_carnet("X-1"))

        with pytest.raises(RepositoryError):
            repo.update(replace(make_carnet("X-1"), id=42))

    def test_delete(self, repo: SQLAlchemyCarnetRepository) -> None:
        saved = repo.create(make_carnet("12345-AB"))

        assert repo.delete(saved.id)
        assert not repo.delete(saved.id)
        assert repo.count() == 0


class TestListing:
    def test_pages_newest_first(self, repo: SQLAlchemyCarnetRepository) -> None:
        for n in range(5):
            repo.create(make_carnet(f"C-{n}"))

        first = repo.list(page=1, page_size=2)
        last = repo.list(page=3, page_size=2)

        assert isinstance(first, Page)
        assert [c.numero_carnet for c in first.items] == ["C-4", "C-3"]
        assert first.total == 5
        assert first.total_pages == 3
        assert first.has_next
        assert [c.numero_carnet for c in last.items] == ["C-0"]
        assert not last.has_next

    def test_search_number_name_and_rut(self, repo: SQLAlchemyCarnetRepository) -> None:
        repo.create(make_carnet("12345-AB", nombre="JUAN PEREZ", rut="12.345.678-5"))
        repo.create(make_carnet("99999-ZZ", nombre="ANA ROJAS", rut="15.970.128-K"))

        assert [c.numero_carnet for c in repo.list(search="perez").items] == ["12345-AB"]
        assert [c.numero_carnet for c in repo.list(search="970.128").items] == ["99999-ZZ"]
        assert repo.list(search="-").total == 2
        assert repo.list(search="nadie").items == []

    def test_page_size_is_clamped(self, tmp_path) -> None:
        ConfigurationManager().set("repository.max_page_size", 3)
        repo = SQLAlchemyCarnetRepository(f"sqlite:///{tmp_path / 'clamp.db'}")

        page = repo.list(page=0, page_size=50)

        assert page.page == 1
        assert page.page_size == 3


class TestStatistics:
    def test_counts(self, repo: SQLAlchemyCarnetRepository) -> None:
        repo.create(make_carnet("VENCIDO", vencimiento=date(2024, 1, 1)))
        repo.create(make_carnet("POR-VENCER", vencimiento=date(2024, 6, 20)))
        repo.create(make_carnet("VIGENTE", vencimiento=date(2027, 1, 1)))
        repo.create(make_carnet("SIN-FECHA"))

        stats = repo.statistics(today=date(2024, 6, 1))

        assert stats["total"] == 4
        assert stats["vencidos"] == 1
        assert stats["vigentes"] == 3
        assert stats["por_vencer"] == 1
        assert stats["sin_vencimiento"] == 1
        assert "generated_at" in stats

    def test_empty(self, repo: SQLAlchemyCarnetRepository) -> None:
        stats = repo.statistics()

        assert stats["total"] == 0
        assert stats["vigentes"] == 0
