"""
RegFree Bridge - Backend Application Package

Bridges telephony platform call events to mobile push notifications:
- Device registration API
- Inbound call webhook and outbound dial endpoints
- Push provider integration
"""

__version__ = "0.1.0"
