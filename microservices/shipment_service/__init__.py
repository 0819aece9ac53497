"""
Shipment Service

Shipment tracking back office: a document synchronization layer between
API consumers and a remote shipment store.

Port: 8260
"""

__version__ = "1.0.0"
__service_name__ = "shipment_service"
__service_port__ = 8260
