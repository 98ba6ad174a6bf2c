"""Purchase order lifecycle and receiving"""
from decimal import Decimal

import pytest

from oms.core.exceptions import AuthorizationDenied, InvalidState, UniquenessViolation
from oms.db.session import transaction
from oms.schemas.purchase_order import PurchaseOrderCreate, PurchaseOrderUpdate
from oms.services import purchase_orders as po_service


def _po_data(ref="PO-ITEM", quantity=10, po_number=None):
    return PurchaseOrderCreate(
        supplier_name="Global Parts Ltd",
        po_number=po_number,
        items=[{
            "product_ref": ref,
            "product_name": "Bolt",
            "requested_quantity": quantity,
            "unit_price": Decimal("1.50"),
        }],
    )


@pytest.fixture
def new_po(db, actors):
    async def _new_po(**kwargs):
        async with transaction(db):
            po = await po_service.create_purchase_order(db, actors["warehouse"], _po_data(**kwargs))
        return po
    return _new_po


async def _advance(db, actors, po_id, *steps):
    for step, role in steps:
        async with transaction(db):
            po = await getattr(po_service, step)(db, actors[role], po_id)
    return po


async def test_create_draft_with_generated_number(new_po):
    po = await new_po()
    assert po.status == "draft"
    assert po.po_number.startswith("PO")
    assert po.total_amount == Decimal("15.00")
    assert po.items[0].total_price == Decimal("15.00")


async def test_duplicate_po_number(new_po):
    await new_po(po_number="PO-FIXED-1")
    with pytest.raises(UniquenessViolation) as exc:
        await new_po(po_number="PO-FIXED-1")
    assert exc.value.detail == "PO number already exists"


async def test_lifecycle_and_receiving(db, actors, make_product, receive, new_po):
    product_id = await make_product("PO-ITEM")
    po = await new_po()

    po = await _advance(db, actors, po.id,
                        ("submit_purchase_order", "warehouse"),
                        ("approve_purchase_order", "admin"),
                        ("mark_purchase_order_sent", "warehouse"))
    assert po.status == "sent_to_supplier"
    assert po.approved_by == actors["admin"].id
    assert po.approved_at is not None

    await receive(product_id, "LOT-PO-1", 4, purchase_order_id=po.id)
    po = await po_service.get_purchase_order(db, actors["warehouse"], po.id)
    assert po.status == "partially_received"

    await receive(product_id, "LOT-PO-2", 6, purchase_order_id=po.id)
    po = await po_service.get_purchase_order(db, actors["warehouse"], po.id)
    assert po.status == "completed"

    with pytest.raises(InvalidState):
        await po_service.cancel_purchase_order(db, actors["warehouse"], po.id)


async def test_only_admins_approve(db, actors, new_po):
    po = await new_po()
    await _advance(db, actors, po.id, ("submit_purchase_order", "warehouse"))
    with pytest.raises(AuthorizationDenied) as exc:
        await po_service.approve_purchase_order(db, actors["warehouse"], po.id)
    assert exc.value.detail == "Only admins can approve purchase orders"


async def test_reject_returns_to_draft_with_reason(db, actors, new_po):
    po = await new_po()
    await _advance(db, actors, po.id, ("submit_purchase_order", "warehouse"))

    async with transaction(db):
        po = await po_service.reject_purchase_order(db, actors["admin"], po.id, "Price too high")
    assert po.status == "draft"
    assert po.rejection_reason == "Price too high"
    assert po.comments[-1].comment == "Purchase order rejected: Price too high"

    async with transaction(db):
        po = await po_service.update_purchase_order(
            db, actors["warehouse"], po.id, PurchaseOrderUpdate(supplier_name="Cheaper Parts")
        )
    assert po.supplier_name == "Cheaper Parts"


async def test_only_drafts_are_editable(db, actors, new_po):
    po = await new_po()
    await _advance(db, actors, po.id, ("submit_purchase_order", "warehouse"))
    with pytest.raises(InvalidState) as exc:
        await po_service.update_purchase_order(
            db, actors["warehouse"], po.id, PurchaseOrderUpdate(supplier_name="Other")
        )
    assert exc.value.detail == "Only draft purchase orders can be edited"


async def test_purchase_orders_are_hidden_from_sales(db, actors, new_po):
    await new_po()
    with pytest.raises(AuthorizationDenied):
        await po_service.list_purchase_orders(db, actors["sales"])
    assert len(await po_service.list_purchase_orders(db, actors["admin"])) == 1
