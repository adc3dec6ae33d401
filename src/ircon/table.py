"""
The handler the database engine drives for a device table.

The engine opens the handler with the table identifier, brackets scans with
scan_begin()/scan_next()/scan_end(), and calls write_row(), update_row() and delete_row() to
change the device state. Indexes, renames and truncation are not available.
"""
import functools
import logging

from ircon import settings
from ircon.address import parse_address
from ircon.scan import EndOfData, ScanSession
from ircon.share import ShareRegistry, SharedDeviceState

logger = logging.getLogger(__name__)

# the row count reported to the optimizer. Claiming a single row would let it assume at most
# one row is returned.
ESTIMATED_ROW_COUNT = 2

# the row count reported for any key range
RECORDS_IN_RANGE = 10


class UnsupportedOperation(Exception):
    """ The operation is not a capability of the table. Retrying will not help. """

    def __init__(self, operation):
        super().__init__("operation '%s' is not supported" % operation)
        self.operation = operation


class Column:
    """ Column metadata supplied by the engine. The type is informational only. """

    def __init__(self, name, type=None):
        self.name = name
        self.type = type

    def __repr__(self):
        return 'Column(%r, %r)' % (self.name, self.type)


class TableShare:
    """
    The engine's definition of a table: the identifier and its columns in schema order.
    """

    def __init__(self, name, columns):
        self.name = name
        self.columns = tuple(c if isinstance(c, Column) else Column(c) for c in columns)

    @property
    def column_names(self):
        return tuple(c.name for c in self.columns)


class TableStats:
    """ statistics reported to the optimizer """

    def __init__(self, records):
        self.records = records


READ_OPERATIONS = frozenset([
    'open', 'close', 'scan', 'estimate_row_count', 'records_in_range', 'info', 'position', 'extra',
])

WRITE_OPERATIONS = frozenset(['write_row', 'update_row', 'delete_row'])

DDL_OPERATIONS = frozenset(['create_table', 'delete_table'])

UNSUPPORTED_OPERATIONS = frozenset([
    'index_read', 'index_first', 'index_last', 'index_next', 'index_prev', 'rnd_pos',
    'rename_table', 'truncate', 'delete_all_rows',
])


class Capabilities:
    """
    The set of operations a table instance supports. Calls to anything else raise
    UnsupportedOperation.
    """

    def __init__(self, supported=READ_OPERATIONS | WRITE_OPERATIONS | DDL_OPERATIONS):
        self.supported = frozenset(supported)

    def supports(self, operation) -> bool:
        return operation in self.supported

    def check(self, operation):
        if not self.supports(operation):
            raise UnsupportedOperation(operation)


READ_ONLY = Capabilities(READ_OPERATIONS | DDL_OPERATIONS)


def capability(operation):
    """ guards a BridgeTable method with a capability check """
    def decorate(fn):
        @functools.wraps(fn)
        def checked(self, *args, **kwargs):
            self.capabilities.check(operation)
            return fn(self, *args, **kwargs)
        return checked
    return decorate


class BridgeTable:
    """
    A handler for one device table. Handlers are cheap; the connection and the attribute cache
    live in the SharedDeviceState that all handlers of the same identifier share.

    :param table_share: the table definition
    :param registry: the registry holding the shares
    :param capabilities: the operations this handler supports
    """

    def __init__(self, table_share: TableShare, registry: ShareRegistry, capabilities: Capabilities=None):
        self.table_share = table_share
        self.registry = registry
        self.capabilities = capabilities or Capabilities()
        self.share = None       # type: SharedDeviceState
        self._scan = None

    @property
    def column_names(self):
        return self.table_share.column_names

    @capability('open')
    def open(self, identifier=None):
        """
        Binds the handler to the device share for the identifier, connecting if necessary.
        :param identifier: the table identifier, `host[:port]`. Defaults to the table name.
        :raises AddressParseFailure: if the identifier is not a device address
        :raises ConnectorError: if the device can't be reached
        """
        if self.share is not None:
            return
        identifier = identifier or self.table_share.name
        address = parse_address(identifier, settings.default_port, settings.max_identifier_length)
        share = self.registry.acquire(identifier, address)
        share.attach()
        self.share = share

    @capability('close')
    def close(self):
        """
        Releases the handler's hold on the share. The connection stays up while other handlers
        have the table open, unless the share closes eagerly.
        """
        share = self.share
        if share is None:
            return
        self.share = None
        self._scan = None
        share.detach()

    def _open_share(self) -> SharedDeviceState:
        share = self.share
        if share is None:
            raise RuntimeError("table %s is not open" % self.table_share.name)
        return share

    @capability('write_row')
    def write_row(self, row):
        """
        Sends the recognized columns of the row to the device. Empty values repeat the
        attribute's last known value.
        :param row: mapping of column name to value
        :return: the line sent
        :raises InvalidValue: if a recognized column holds non-ASCII text
        """
        return self._open_share().write(self.column_names, row)

    @capability('update_row')
    def update_row(self, new_row, old_row=None):
        """ identical to write_row() - the old row is not consulted """
        return self._open_share().write(self.column_names, new_row)

    @capability('delete_row')
    def delete_row(self, row=None):
        """ resets the device attributes to UNKNOWN and sends the reset command """
        self._open_share().reset()

    @capability('scan')
    def scan(self) -> ScanSession:
        """ creates a new cursor over the table's single row """
        return ScanSession(self._open_share(), self.column_names)

    def scan_begin(self):
        self._scan = self.scan().begin()

    def scan_next(self) -> dict:
        """
        :raises EndOfData: once the row has been returned
        """
        if self._scan is None:
            raise EndOfData()
        return self._scan.next()

    def scan_end(self):
        scan = self._scan
        self._scan = None
        if scan is not None:
            scan.end()

    @capability('estimate_row_count')
    def estimate_row_count(self):
        return ESTIMATED_ROW_COUNT

    @capability('info')
    def info(self, flag=None) -> TableStats:
        return TableStats(ESTIMATED_ROW_COUNT)

    @capability('records_in_range')
    def records_in_range(self, index, min_key=None, max_key=None):
        return RECORDS_IN_RANGE

    @capability('position')
    def position(self, row):
        """ rows have no position to remember """

    @capability('extra')
    def extra(self, hint):
        """ engine hints are accepted and ignored """
        logger.debug("%s ignoring hint %s" % (self.table_share.name, hint))

    @staticmethod
    def file_extensions():
        """ the table keeps no files """
        return ()

    @capability('index_read')
    def index_read(self, key, find_flag=None):
        """ the table has no indexes """
        raise UnsupportedOperation('index_read')

    @capability('index_first')
    def index_first(self):
        """ the table has no indexes """
        raise UnsupportedOperation('index_first')

    @capability('index_last')
    def index_last(self):
        """ the table has no indexes """
        raise UnsupportedOperation('index_last')

    @capability('index_next')
    def index_next(self):
        """ the table has no indexes """
        raise UnsupportedOperation('index_next')

    @capability('index_prev')
    def index_prev(self):
        """ the table has no indexes """
        raise UnsupportedOperation('index_prev')

    @capability('rnd_pos')
    def rnd_pos(self, position):
        """ rows have no position to return to """
        raise UnsupportedOperation('rnd_pos')

    @capability('create_table')
    def create_table(self, name, table_share=None):
        """ nothing is stored, so creating a table needs no work """

    @capability('delete_table')
    def delete_table(self, name):
        """ nothing is stored, so dropping a table needs no work """

    @capability('rename_table')
    def rename_table(self, old_name, new_name):
        """ the identifier is the device address, so it cannot change """
        raise UnsupportedOperation('rename_table')

    @capability('truncate')
    def truncate(self):
        """ the device has no rows to remove """
        raise UnsupportedOperation('truncate')

    @capability('delete_all_rows')
    def delete_all_rows(self):
        """ the device has no rows to remove """
        raise UnsupportedOperation('delete_all_rows')
