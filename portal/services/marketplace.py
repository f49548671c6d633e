# portal/services/marketplace.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from portal.errors import ValidationError
from portal.models import ORDER_STATUSES, new_id, now_iso, to_number

SERVICES: List[Dict[str, Any]] = [
    {
        "id": "golden-visa",
        "name": "Dubai Golden Visa Assistance",
        "description": (
            "Complete assistance with Dubai Golden Visa application for property investors. "
            "Includes document preparation, application submission, and follow-up."
        ),
        "price": 5000,
        "category": "visa",
        "deliveryTime": "4-6 weeks",
        "features": [
            "Full document review and preparation",
            "Application submission to ICA",
            "Follow-up and status tracking",
            "Medical test coordination",
            "Emirates ID assistance",
            "Dedicated case manager",
        ],
        "popular": True,
    },
    {
        "id": "last-will",
        "name": "Last Will & Testament",
        "description": "Professional drafting of your Last Will and Testament in accordance with UAE law.",
        "price": 500,
        "category": "legal",
        "deliveryTime": "1-2 weeks",
        "features": [
            "Consultation with legal expert",
            "Will drafting by certified lawyer",
            "DIFC Wills registration option",
            "Asset distribution planning",
            "Executor appointment guidance",
        ],
    },
    {
        "id": "poa",
        "name": "Power of Attorney (POA)",
        "description": "Comprehensive Power of Attorney document preparation and notarization.",
        "price": 300,
        "category": "legal",
        "deliveryTime": "3-5 business days",
        "features": [
            "POA document drafting",
            "Notary public services",
            "Translation if needed",
            "Legal consultation",
            "Ministry attestation coordination",
        ],
    },
    {
        "id": "sales-progression",
        "name": "Sales Progression Service",
        "description": "End-to-end property sales management service from listing to closing.",
        "price": 0,
        "category": "sales",
        "deliveryTime": "Varies by property",
        "features": [
            "Professional property valuation",
            "Marketing and listing",
            "Buyer screening and viewings",
            "Negotiation assistance",
            "Transaction management",
            "Commission: 2% of sale price",
        ],
    },
]

_BY_ID = {s["id"]: s for s in SERVICES}


def get_service(service_id: Optional[str]) -> Optional[Dict[str, Any]]:
    return _BY_ID.get(service_id or "")


def normalize_items(raw_items: Any) -> List[Dict[str, Any]]:
    """Cart items as ``{service, quantity}``; ``service`` may be an id or the catalog entry."""
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("Invalid order data")
    items = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise ValidationError("Invalid order item")
        ref = raw.get("service")
        service_id = ref.get("id") if isinstance(ref, dict) else (ref or raw.get("serviceId"))
        service = get_service(service_id)
        if service is None:
            raise ValidationError(f"Unknown service: {service_id}")
        quantity = raw.get("quantity")
        quantity = 1 if quantity is None else int(to_number(quantity))
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        items.append({"service": service, "quantity": quantity})
    return items


def cart_total(items: List[Dict[str, Any]]) -> float:
    return sum(to_number(i["service"].get("price")) * i["quantity"] for i in items)


def build_order(data: Dict[str, Any]) -> Dict[str, Any]:
    if not data or not data.get("investorId"):
        raise ValidationError("Invalid order data")
    items = normalize_items(data.get("items"))
    status = data.get("status") or "pending_payment"
    if status not in ORDER_STATUSES:
        raise ValidationError(f"Unknown order status: {status}")
    total = to_number(data.get("totalAmount")) if data.get("totalAmount") is not None else cart_total(items)
    return {
        "id": data.get("id") or new_id(),
        "investorId": data["investorId"],
        "items": items,
        "totalAmount": total,
        "paymentMethod": "bank_transfer",
        "status": status,
        "bankTransferProof": data.get("bankTransferProof"),
        "notes": data.get("notes") or "",
        "createdAt": data.get("createdAt") or now_iso(),
    }
