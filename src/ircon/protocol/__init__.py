"""
The line protocol: encoding of command lines and the background writer that sends them.
"""
