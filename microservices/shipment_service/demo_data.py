"""
Demo shipments

A small set of realistic shipments spread across the lifecycle, used by
``ShipmentRepository.seed_demo_data``. Dates are relative to now so the
set always looks current.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List


def _contact(name: str, phone: str) -> Dict[str, str]:
    email = name.lower().replace(" ", ".") + "@example.com"
    return {"name": name, "phone": phone, "email": email}


def _address(address: str, city: str, state: str, zip_code: str) -> Dict[str, str]:
    return {"address": address, "city": city, "state": state, "zip": zip_code, "country": "USA"}


def _event(status: str, code: str, location: str, when: datetime, details: str) -> Dict[str, str]:
    return {
        "status": status,
        "statusCode": code,
        "location": location,
        "timestamp": when.isoformat(),
        "details": details,
    }


def demo_shipments() -> List[Dict[str, Any]]:
    """Demo shipment documents (camelCase, no ids), newest first"""
    now = datetime.now(timezone.utc)
    hour = timedelta(hours=1)
    day = timedelta(days=1)
    yesterday, last_week = now - day, now - 7 * day

    return [
        {
            "trackingNumber": "SHIP1234567",
            "status": "in_transit",
            "packageType": "package",
            "serviceType": "express",
            "shipDate": last_week.date().isoformat(),
            "estimatedDelivery": (now + day).date().isoformat(),
            "sender": _contact("John Smith", "+1 (555) 123-4567"),
            "receiver": _contact("Sarah Johnson", "+1 (555) 987-6543"),
            "origin": _address("123 Main St", "New York", "NY", "10001"),
            "destination": _address("456 Market St", "San Francisco", "CA", "94103"),
            "items": [
                {"description": "Electronics", "quantity": 1, "weight": 2.5,
                 "weightUnit": "kg", "dimensions": "30 x 20 x 10 cm"},
            ],
            "trackingHistory": [
                _event("in_progress", "in_transit", "Chicago, IL", now, "Package in transit to destination"),
                _event("completed", "departed_facility", "Chicago, IL", yesterday, "Departed from sorting facility"),
                _event("completed", "arrived_at_facility", "Chicago, IL", yesterday - hour, "Arrived at sorting facility"),
                _event("completed", "label_created", "New York, NY", last_week + hour,
                       "Shipping label created and package prepared"),
                _event("completed", "shipment_created", "New York, NY", last_week, "Shipment created and pending pickup"),
            ],
        },
        {
            "trackingNumber": "SHIP2345678",
            "status": "delivered",
            "packageType": "document",
            "serviceType": "standard",
            "shipDate": last_week.date().isoformat(),
            "estimatedDelivery": yesterday.date().isoformat(),
            "sender": _contact("Michael Brown", "+1 (555) 234-5678"),
            "receiver": _contact("Emily Davis", "+1 (555) 876-5432"),
            "origin": _address("789 Oak St", "Chicago", "IL", "60601"),
            "destination": _address("321 Pine St", "Seattle", "WA", "98101"),
            "items": [
                {"description": "Legal Documents", "quantity": 1, "weight": 0.5,
                 "weightUnit": "kg", "dimensions": "30 x 21 x 1 cm"},
            ],
            "trackingHistory": [
                _event("completed", "delivered", "Seattle, WA", yesterday, "Package delivered to recipient"),
                _event("completed", "out_for_delivery", "Seattle, WA", yesterday - 4 * hour, "Out for delivery"),
                _event("completed", "arrived_at_facility", "Seattle, WA", yesterday - day, "Arrived at delivery facility"),
                _event("completed", "in_transit", "Portland, OR", yesterday - 2 * day, "In transit to destination"),
                _event("completed", "label_created", "Chicago, IL", last_week + hour, "Shipping label created"),
                _event("completed", "shipment_created", "Chicago, IL", last_week, "Shipment created"),
            ],
        },
        {
            "trackingNumber": "SHIP3456789",
            "status": "processing",
            "packageType": "package",
            "serviceType": "standard",
            "shipDate": now.date().isoformat(),
            "estimatedDelivery": (now + 7 * day).date().isoformat(),
            "sender": _contact("Robert Wilson", "+1 (555) 345-6789"),
            "receiver": _contact("Jennifer Taylor", "+1 (555) 765-4321"),
            "origin": _address("567 Elm St", "Boston", "MA", "02108"),
            "destination": _address("890 Cedar St", "Miami", "FL", "33101"),
            "items": [
                {"description": "Clothing", "quantity": 3, "weight": 1.2,
                 "weightUnit": "kg", "dimensions": "25 x 20 x 15 cm"},
                {"description": "Books", "quantity": 2, "weight": 3,
                 "weightUnit": "kg", "dimensions": "30 x 20 x 10 cm"},
            ],
            "trackingHistory": [
                _event("in_progress", "processing", "Boston, MA", now - hour,
                       "Package is being processed at origin facility"),
                _event("completed", "label_created", "Boston, MA", now - 2 * hour,
                       "Shipping label created and package prepared for pickup"),
                _event("completed", "shipment_created", "Boston, MA", now - 3 * hour,
                       "Shipment created and pending label creation"),
            ],
        },
        {
            "trackingNumber": "SHIP4567890",
            "status": "out_for_delivery",
            "packageType": "package",
            "serviceType": "express",
            "shipDate": (now - 2 * day).date().isoformat(),
            "estimatedDelivery": now.date().isoformat(),
            "sender": _contact("Lisa Anderson", "+1 (555) 456-7890"),
            "receiver": _contact("David Martinez", "+1 (555) 654-3210"),
            "origin": _address("246 Pine Ave", "Los Angeles", "CA", "90210"),
            "destination": _address("135 Oak Blvd", "Phoenix", "AZ", "85001"),
            "items": [
                {"description": "Gift Package", "quantity": 1, "weight": 1.8,
                 "weightUnit": "kg", "dimensions": "20 x 15 x 10 cm"},
            ],
            "trackingHistory": [
                _event("in_progress", "out_for_delivery", "Phoenix, AZ", now - hour,
                       "Package is out for delivery and will arrive today"),
                _event("completed", "arrived_at_facility", "Phoenix, AZ", now - 2 * hour,
                       "Arrived at local delivery facility"),
                _event("completed", "in_transit", "Flagstaff, AZ", now - day, "Package in transit to destination city"),
                _event("completed", "departed_facility", "Los Angeles, CA", now - 2 * day,
                       "Departed from origin facility"),
                _event("completed", "processing", "Los Angeles, CA", now - 2 * day - hour,
                       "Package processed and ready for shipment"),
            ],
        },
        {
            "trackingNumber": "SHIP5678901",
            "status": "pending",
            "packageType": "document",
            "serviceType": "overnight",
            "shipDate": now.date().isoformat(),
            "estimatedDelivery": (now + day).date().isoformat(),
            "sender": _contact("Thomas Clark", "+1 (555) 567-8901"),
            "receiver": _contact("Maria Rodriguez", "+1 (555) 543-2109"),
            "origin": _address("789 Broadway", "Denver", "CO", "80202"),
            "destination": _address("456 State St", "Austin", "TX", "73301"),
            "items": [
                {"description": "Urgent Documents", "quantity": 1, "weight": 0.3,
                 "weightUnit": "kg", "dimensions": "32 x 23 x 2 cm"},
            ],
            "trackingHistory": [
                _event("pending", "shipment_created", "Denver, CO", now, "Shipment created and awaiting pickup"),
            ],
        },
    ]


__all__ = ["demo_shipments"]
