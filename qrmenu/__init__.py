"""
                QR Menu Ordering Platform

Multi-tenant restaurant ordering backend: customers scan a table QR
code, browse the menu and order; owners and their staff follow orders
live through realtime, web push and SMS notifications.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
