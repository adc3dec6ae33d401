import logging

logger = logging.getLogger(__name__)

# the port used when the table name has none, or one that can't be parsed
DEFAULT_PORT = 8888

# table names longer than this are rejected rather than truncated
MAX_IDENTIFIER_LENGTH = 255


class AddressParseFailure(ValueError):
    """ The table identifier does not describe a device address. """


class DeviceAddress:
    """
    Describes the TCP endpoint of a device. Instances are immutable.
    """
    __slots__ = ('_host', '_port')

    def __init__(self, host, port):
        self._host = host
        self._port = port

    @property
    def host(self):
        return self._host

    @property
    def port(self):
        return self._port

    def key(self):
        """
        >>> DeviceAddress('10.0.0.5', 8888).key()
        '10.0.0.5:8888'
        """
        return str(self._host) + ':' + str(self._port)

    def as_tuple(self):
        """ the address in the form socket.connect() expects """
        return self._host, self._port

    def __eq__(self, other):
        return isinstance(other, DeviceAddress) and self.as_tuple() == other.as_tuple()

    def __ne__(self, other):
        return not self.__eq__(other)

    def __hash__(self):
        return hash(self.as_tuple())

    def __repr__(self):
        return 'DeviceAddress(%r, %r)' % (self._host, self._port)

    def __str__(self):
        return self.key()


def parse_port(text, default_port=DEFAULT_PORT):
    """
    Parses the port part of an identifier. Anything that isn't a usable TCP port
    yields the default port.

    >>> parse_port('1234')
    1234
    >>> parse_port('', 99)
    99
    >>> parse_port('abc', 99)
    99
    """
    try:
        port = int(text)
    except (TypeError, ValueError):
        return default_port
    if not 0 < port < 65536:
        return default_port
    return port


def parse_address(identifier, default_port=DEFAULT_PORT, max_length=MAX_IDENTIFIER_LENGTH) -> DeviceAddress:
    """
    Derives the device address from a table identifier of the form `host[:port]`.
    The identifier is split at the first colon. A missing, empty or malformed port falls back
    to the default port.

    :param identifier:  the table identifier
    :param default_port: the port used when the identifier doesn't give a usable one
    :param max_length:  identifiers longer than this raise AddressParseFailure
    :raises AddressParseFailure: when the identifier is empty, too long, or has no host.
    """
    if not identifier:
        raise AddressParseFailure("empty table identifier")
    if len(identifier) > max_length:
        raise AddressParseFailure("table identifier is %d characters long, the limit is %d"
                                  % (len(identifier), max_length))
    host, sep, port_text = identifier.partition(':')
    if not host:
        raise AddressParseFailure("no host in table identifier '%s'" % identifier)
    port = parse_port(port_text, default_port) if sep else default_port
    if sep and port == default_port and port_text != str(default_port):
        logger.debug("unusable port '%s' in '%s', using %d" % (port_text, identifier, default_port))
    return DeviceAddress(host, port)
