"""WebSocket endpoint for cmdbridge.

Serves a small static page and upgrades connections on the WebSocket
path, handing each one to a fresh bridged session.
"""
