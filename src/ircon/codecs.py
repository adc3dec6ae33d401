"""
Translates between table columns and the attribute tokens of the line protocol.
"""
from abc import abstractmethod

# the value of an attribute that was never written, or was reset by a delete
UNKNOWN = '-'

# the columns that have a meaning on the wire, in wire order
RECOGNIZED_ATTRIBUTES = ('mode', 'temperature', 'power', 'angle')

# sent as-is on delete. The device firmware expects this exact line.
RESET_COMMAND = 'mode:' + UNKNOWN + ',\n'


class InvalidValue(ValueError):
    """ The value has no representation in the ASCII line protocol. """


def value_text(value):
    """
    Renders a column value as the text sent to the device. None is the empty string.

    >>> value_text(None)
    ''
    >>> value_text(24)
    '24'
    >>> value_text(b'cool')
    'cool'
    :raises InvalidValue: if the text is not ASCII
    """
    if value is None:
        return ''
    try:
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).decode('ascii')
        text = str(value)
        text.encode('ascii')
        return text
    except UnicodeError as e:
        raise InvalidValue("%r cannot be sent to the device" % (value,)) from e


class AttributeCache:
    """
    The last known value of each recognized attribute. A value is either UNKNOWN or the last
    non-empty value written.
    Callers are responsible for locking - see SharedDeviceState.
    """

    def __init__(self, attributes=RECOGNIZED_ATTRIBUTES, unknown=UNKNOWN):
        self.unknown = unknown
        self._values = dict.fromkeys(attributes, unknown)

    def reset(self):
        for name in self._values:
            self._values[name] = self.unknown

    def __getitem__(self, name):
        return self._values[name]

    def __setitem__(self, name, value):
        if name not in self._values:
            raise KeyError(name)
        self._values[name] = value

    def __contains__(self, name):
        return name in self._values

    def __iter__(self):
        return iter(self._values)

    def snapshot(self) -> dict:
        return dict(self._values)


class ColumnCodec:
    """
    Knows how to convert a column value to/from the on-wire format.
    """

    @abstractmethod
    def encode(self, column_name, value, cache):
        """ returns the wire token for the column, or None if the column has no wire form. """
        raise NotImplementedError()

    @abstractmethod
    def decode(self, cache, column_name):
        """ returns the value a read of the column produces. """
        raise NotImplementedError()


class AttributeCodec(ColumnCodec):
    """
    Encodes the recognized attributes as `name:value` tokens.

    Column names are compared exactly against the recognized attribute names. Other columns
    are invisible to the protocol: they produce no token when written and read back as the
    UNKNOWN sentinel.
    """

    def __init__(self, attributes=RECOGNIZED_ATTRIBUTES, unknown=UNKNOWN):
        self.attributes = tuple(attributes)
        self.unknown = unknown

    def new_cache(self) -> AttributeCache:
        return AttributeCache(self.attributes, self.unknown)

    def attribute_for(self, column_name):
        return column_name if column_name in self.attributes else None

    def encode(self, column_name, value, cache):
        """
        Writes a non-empty value through to the cache and returns the token for the cached value.
        An empty value leaves the cache alone, so the token repeats the last known value.
        :return: the token, or None when the column isn't a recognized attribute.
        """
        attribute = self.attribute_for(column_name)
        if attribute is None:
            return None
        text = value_text(value)
        if text:
            cache[attribute] = text
        return attribute + ':' + cache[attribute]

    def decode(self, cache, column_name):
        attribute = self.attribute_for(column_name)
        return self.unknown if attribute is None else cache[attribute]

    def encode_row(self, column_names, row, cache):
        """
        Encodes the columns of a row in the given order.
        :param column_names: the table's columns, in schema order
        :param row: a mapping from column name to value. Missing columns are treated as empty.
        :return: the list of tokens produced
        :raises InvalidValue: if a recognized column's value can't be sent. The cache is unchanged.
        """
        # every value is rendered before the first one reaches the cache
        texts = [(name, value_text(row.get(name))) for name in column_names
                 if self.attribute_for(name) is not None]
        return [self.encode(name, text, cache) for name, text in texts]

    def decode_row(self, cache, column_names) -> dict:
        return {name: self.decode(cache, name) for name in column_names}
