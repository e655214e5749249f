import base64
import uuid
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
import pytest
from fastapi.testclient import TestClient

from slipshare.core.auth import get_current_user
from slipshare.core.database import get_db
from slipshare.core.errors import NotAReceiptError, ReceiptAccessDenied
from slipshare.main import app
from slipshare.schemas.parsing import ParsedItem, ParsedReceipt
from slipshare.services.receipt_service import ReceiptAccess
from slipshare.utils.allocation import compute_allocation

CREATE_BODY = {
    "merchant_name": "Som Tam Shop",
    "tax_percent": 7,
    "service_percent": 10,
    "rounding": -0.5,
    "items": [
        {"name": "Pad Thai", "qty": 2, "unit_price": 100},
        {"name": "Thai Tea", "qty": 1, "unit_price": 50},
    ],
}


@pytest.fixture
def client(owner):
    async def override_db():
        yield MagicMock()

    app.dependency_overrides[get_current_user] = lambda: owner
    app.dependency_overrides[get_db] = override_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_create_receipt(client):
    receipt_id = uuid.uuid4()
    mock = AsyncMock(return_value=SimpleNamespace(id=receipt_id))
    with patch("slipshare.api.receipts.create_receipt", mock):
        resp = client.post("/api/receipts", json=CREATE_BODY)

    assert resp.status_code == 201
    assert resp.json() == {"receipt_id": str(receipt_id)}
    data = mock.call_args.args[2]
    assert data.currency == "THB"
    assert data.user_type.value == "payer"


@pytest.mark.parametrize("change", [
    {"items": [{"name": "", "qty": 1, "unit_price": 10}]},
    {"items": [{"name": "Tea", "qty": 0, "unit_price": 10}]},
    {"items": [{"name": "Tea", "qty": 1, "unit_price": -1}]},
    {"tax_percent": 101},
    {"service_percent": -1},
    {"currency": "BAHT"},
    {"user_type": "owner"},
])
def test_create_receipt_validation(client, change):
    with patch("slipshare.api.receipts.create_receipt", AsyncMock()) as mock:
        resp = client.post("/api/receipts", json={**CREATE_BODY, **change})

    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_REQUEST_DATA"
    mock.assert_not_awaited()


def test_receipt_detail_has_ordered_items_and_rates(client, make_receipt, make_selection, owner_id):
    """The detail response carries everything needed to recompute the same allocation."""
    receipt = make_receipt()
    item_a = str(receipt.items[0].id)
    selection = make_selection(receipt, user_id=owner_id, selected_items=[item_a], calculated_total=233.6)
    access = ReceiptAccess(receipt=receipt, user_selection=selection, is_creator=True, is_payer=True)

    with patch("slipshare.api.receipts.get_receipt_for_user", AsyncMock(return_value=access)):
        resp = client.get(f"/api/receipts/{receipt.id}")

    assert resp.status_code == 200
    body = resp.json()
    assert body["is_creator"] is True
    assert body["is_payer"] is True
    assert [i["position"] for i in body["receipt"]["items"]] == [1, 2]
    assert body["user_selection"]["selected_items"] == [item_a]

    r = body["receipt"]
    items = [
        SimpleNamespace(id=i["id"], qty=i["qty"], unit_price=float(i["unit_price"]))
        for i in r["items"]
    ]
    rates = SimpleNamespace(
        subtotal=float(r["subtotal"]), tax_percent=float(r["tax_percent"]),
        service_percent=float(r["service_percent"]), rounding=float(r["rounding"]), total=float(r["total"]),
    )
    recomputed = compute_allocation(items, rates, body["user_selection"]["selected_items"], {})
    assert recomputed.final_total == pytest.approx(body["user_selection"]["calculated_total"])


def test_receipt_detail_access_denied(client):
    with patch("slipshare.api.receipts.get_receipt_for_user", AsyncMock(side_effect=ReceiptAccessDenied())):
        resp = client.get(f"/api/receipts/{uuid.uuid4()}")

    assert resp.status_code == 403
    assert resp.json()["code"] == "RECEIPT_ACCESS_DENIED"


def test_list_receipts_pagination(client, make_receipt):
    receipts = [make_receipt(), make_receipt()]
    with patch("slipshare.api.receipts.list_receipts", AsyncMock(return_value=(receipts, 5))) as mock:
        resp = client.get("/api/receipts", params={"limit": 2, "offset": 2})

    assert resp.status_code == 200
    body = resp.json()
    assert len(body["receipts"]) == 2
    assert body["pagination"] == {"total": 5, "limit": 2, "offset": 2, "has_more": True}
    assert mock.call_args.kwargs == {"limit": 2, "offset": 2}


def test_parse_receipt(client):
    parsed = ParsedReceipt(
        merchant_name="Som Tam Shop",
        items=[ParsedItem(name="Pad Thai", qty=2, unit_price=Decimal("100"))],
        subtotal=Decimal("200"),
        total=Decimal("200"),
    )
    image = base64.b64encode(b"jpeg-bytes").decode()
    with patch("slipshare.api.receipts.parse_receipt_image", AsyncMock(return_value=parsed)) as mock:
        resp = client.post("/api/receipts/parse", json={"image_base64": image})

    assert resp.status_code == 200
    assert resp.json()["items"][0]["name"] == "Pad Thai"
    assert mock.call_args.args == (b"jpeg-bytes", "image/jpeg")


def test_parse_not_a_receipt(client):
    image = base64.b64encode(b"cat-photo").decode()
    with patch("slipshare.api.receipts.parse_receipt_image", AsyncMock(side_effect=NotAReceiptError())):
        resp = client.post("/api/receipts/parse", json={"image_base64": image})

    assert resp.status_code == 422
    assert resp.json()["code"] == "NOT_A_RECEIPT"


def test_parse_bad_base64(client):
    resp = client.post("/api/receipts/parse", json={"image_base64": "%%%"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_REQUEST_DATA"
