import pytest

from almoxarifado.infra.memoria import MemoryStore
from almoxarifado.infra.repositories import SQLiteStore


@pytest.fixture(params=["memoria", "sqlite"])
def store(request, tmp_path):
    """Mesmos testes contra as duas implementações do store."""
    if request.param == "memoria":
        return MemoryStore()
    return SQLiteStore(str(tmp_path / "almoxarifado_test.sqlite"))


@pytest.fixture
def novo_item(store):
    """Cria um item direto no store (sem passar pelo cadastro)."""
    from almoxarifado.domain.models import ItemEstoque

    def _novo(nome="Gaze", quantidade=0, **kw):
        kw.setdefault("categoria", "Medicamentos")
        return store.insert_stock_record(ItemEstoque(nome=nome, quantidade=quantidade, **kw))

    return _novo
