"""
Connectors: establish and tear down the conduit to a device.
"""
