"""
Shipment Service Routes Registry

Route metadata served by the service-info endpoint.
"""

from typing import Any, Dict

SERVICE_METADATA = {
    "service_name": "shipment_service",
    "version": "1.0.0",
    "tags": ["shipment", "tracking", "v1"],
    "capabilities": [
        "shipment_management",
        "status_workflow",
        "tracking_history",
        "bulk_operations",
        "change_notifications",
    ],
}

ROUTES = [
    {"path": "/", "methods": ["GET"], "description": "Service info"},
    {"path": "/health", "methods": ["GET"], "description": "Health check"},
    {"path": "/api/v1/shipments", "methods": ["GET", "POST"], "description": "List/search or create shipments"},
    {"path": "/api/v1/shipments/bulk/status", "methods": ["POST"], "description": "Change status of many shipments"},
    {"path": "/api/v1/shipments/bulk/delete", "methods": ["POST"], "description": "Delete many shipments"},
    {"path": "/api/v1/shipments/{key}", "methods": ["GET", "PATCH", "DELETE"],
     "description": "Get/update/delete shipment by tracking number or id"},
    {"path": "/api/v1/shipments/{key}/status", "methods": ["POST"], "description": "Change shipment status"},
    {"path": "/api/v1/shipments/{key}/events", "methods": ["POST"], "description": "Add tracking event"},
    {"path": "/api/v1/shipments/{key}/location", "methods": ["POST"], "description": "Record location update"},
]


def get_route_summary() -> Dict[str, Any]:
    """Compact route metadata"""
    return {
        "route_count": len(ROUTES),
        "routes": [f"{','.join(r['methods'])} {r['path']}" for r in ROUTES],
        "api_version": "v1",
        "base_path": "/api/v1/shipments",
    }


__all__ = ["SERVICE_METADATA", "ROUTES", "get_route_summary"]
