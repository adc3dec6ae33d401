"""
Conduits: the byte channel to a device.
"""
