"""
Tunables for the bridge. The values below are the built-in defaults; load() replaces them with
the values from the ircon*.cfg files (see ircon.config.config.load_config).
"""
import sys

from ircon.address import DEFAULT_PORT, MAX_IDENTIFIER_LENGTH
from ircon.config.config import configure_module

default_port = DEFAULT_PORT
max_identifier_length = MAX_IDENTIFIER_LENGTH

# seconds, and always positive: a zero timeout would make the socket non-blocking
connect_timeout = 5.0
send_timeout = 5.0

# close the device connection as soon as any handler closes, rather than when the last one does
eager_close = False


def load():
    configure_module(sys.modules[__name__], 'ircon')
