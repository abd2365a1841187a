"""
                        Services Module

Contains all business logic services. External gateways follow the
hybrid architecture pattern: a Mock (development) and a Real
(production) implementation behind one abstract base class.

Services:
    - qr_registry: QR token issuance, resolution and scan counting
    - orders: Order lifecycle engine and status graph
    - events / fanout: Order events and notification fan-out
    - realtime: WebSocket session directory
    - notifications: SMS (Twilio)
    - push: Web push (VAPID)
    - printer: Thermal bill printing (ESC/POS)
    - menu_catalog / menu_extraction: Menu management and menu upload
    - staff / inventory: Restaurant administration
    - analytics: Dashboard statistics
"""

from qrmenu.services.container import ServiceContainer

__all__ = ["ServiceContainer"]
