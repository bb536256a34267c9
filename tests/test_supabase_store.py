"""
Testes para o SupabaseStockStore com cliente mockado
"""
import pytest
from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4
from postgrest.exceptions import APIError
from stashkeeper.config import settings
from stashkeeper.services import supabase_store
from stashkeeper.services.exceptions import NotFound, StoreError
from stashkeeper.services.supabase_store import SupabaseStockStore, get_supabase_client


@pytest.fixture
def client():
    """Cliente Supabase fake: todos os métodos do query builder encadeiam"""
    mock_client = MagicMock()
    query = mock_client.table.return_value
    for method in ("select", "eq", "limit", "order", "insert", "update"):
        getattr(query, method).return_value = query
    query.execute.return_value = MagicMock(data=[])
    return mock_client


def _respond(client, data):
    client.table.return_value.execute.return_value = MagicMock(data=data)


def test_store_is_not_atomic(client):
    assert SupabaseStockStore(client).atomic is False


def test_read_product(client):
    product_id = uuid4()
    _respond(client, [{
        "id": str(product_id),
        "code": "P001",
        "name": "Leite",
        "unit": "l",
        "quantity": 2.5,
        "initial_quantity": 0,
        "min_quantity": None,
        "created_at": "2024-01-01T10:00:00+00:00",
    }])

    product = SupabaseStockStore(client).read_product(product_id)

    assert product.id == product_id
    assert product.quantity == Decimal("2.5")
    client.table.assert_called_with("products")
    client.table.return_value.eq.assert_called_with("id", str(product_id))


def test_read_product_not_found(client):
    with pytest.raises(NotFound):
        SupabaseStockStore(client).read_product(uuid4())


def test_api_error_becomes_store_error(client):
    client.table.return_value.execute.side_effect = APIError({"message": "boom", "code": "500"})

    with pytest.raises(StoreError):
        SupabaseStockStore(client).list_products()


def test_write_product_sends_float(client):
    product_id = uuid4()
    _respond(client, [{"id": str(product_id)}])

    SupabaseStockStore(client).write_product(product_id, Decimal("2.500"))

    client.table.return_value.update.assert_called_once_with({"quantity": 2.5})


def test_write_product_missing_row(client):
    with pytest.raises(NotFound):
        SupabaseStockStore(client).write_product(uuid4(), Decimal("1"))


def test_insert_movement_serializes_payload(client):
    product_id = uuid4()
    original_id = uuid4()
    row = {
        "id": str(uuid4()),
        "product_id": str(product_id),
        "type": "entrada",
        "quantity": 95.0,
        "unit": "kg",
        "notes": None,
        "compensates_movement_id": str(original_id),
        "deleted": False,
        "created_at": "2024-01-01T10:00:00+00:00",
    }
    _respond(client, [row])

    movement = SupabaseStockStore(client).insert_movement({
        "product_id": product_id,
        "type": "entrada",
        "quantity": Decimal("95.000"),
        "unit": "kg",
        "notes": None,
        "compensates_movement_id": original_id,
    })

    client.table.return_value.insert.assert_called_once_with({
        "product_id": str(product_id),
        "type": "entrada",
        "quantity": 95.0,
        "unit": "kg",
        "compensates_movement_id": str(original_id),
    })
    assert movement.compensates_movement_id == original_id


def test_update_movement_rejects_unknown_fields(client):
    with pytest.raises(ValueError):
        SupabaseStockStore(client).update_movement(uuid4(), product_id=uuid4())


def test_list_movements_filters(client):
    product_id = uuid4()

    assert SupabaseStockStore(client).list_movements(product_id=product_id, deleted=False) == []

    query = client.table.return_value
    query.eq.assert_any_call("product_id", str(product_id))
    query.eq.assert_any_call("deleted", False)
    query.order.assert_called_once_with("created_at")


def test_get_supabase_client_not_configured(monkeypatch):
    monkeypatch.setattr(supabase_store, "_supabase_client", None)
    monkeypatch.setattr(settings, "SUPABASE_URL", "")

    with pytest.raises(StoreError):
        get_supabase_client()
