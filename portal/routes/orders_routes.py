# portal/routes/orders_routes.py
from flask import Blueprint, current_app, jsonify, request

from portal.errors import ValidationError
from portal.extensions import store
from portal.models import ORDER_STATUSES, now_iso
from portal.services.marketplace import SERVICES, build_order

orders_bp = Blueprint("orders", __name__, url_prefix="/api")


@orders_bp.get("/services")
def list_services():
    return jsonify(success=True, data=SERVICES)


@orders_bp.post("/createOrder")
def create_order():
    body = request.get_json(silent=True) or {}
    try:
        order = build_order(body.get("order") or body.get("data"))
    except ValidationError as e:
        return jsonify(success=False, error=e.message), 400
    try:
        store.orders.add(order)
    except Exception as e:
        current_app.logger.exception("createOrder failed")
        return jsonify(success=False, error=str(e)), 500
    current_app.logger.info("Order %s created for %s (%.2f)", order["id"], order["investorId"], order["totalAmount"])
    return jsonify(success=True, data=order, message="Order created successfully")


@orders_bp.post("/updateOrderStatus")
def update_order_status():
    body = request.get_json(silent=True) or {}
    order_id, status = body.get("orderId"), body.get("status")
    if not order_id or not status:
        return jsonify(success=False, error="Order ID and status are required"), 400
    if status not in ORDER_STATUSES:
        return jsonify(success=False, error=f"Unknown order status: {status}"), 400

    changes = {"status": status, "updatedAt": now_iso()}
    if body.get("bankTransferProof"):
        changes["bankTransferProof"] = body["bankTransferProof"]
    try:
        order = store.orders.update(order_id, changes)
    except Exception as e:
        current_app.logger.exception("updateOrderStatus failed")
        return jsonify(success=False, error=str(e)), 500
    if order is None:
        return jsonify(success=False, error="Order not found"), 404
    return jsonify(success=True, data=order, message="Order status updated successfully")


@orders_bp.post("/getOrders")
def get_orders():
    investor_id = (request.get_json(silent=True) or {}).get("investorId")
    if not investor_id:
        return jsonify(success=False, error="Investor ID is required"), 400
    orders = sorted(store.orders.filter(investorId=investor_id), key=lambda o: o.get("createdAt") or "", reverse=True)
    return jsonify(success=True, data=orders)
