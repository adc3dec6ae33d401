"""
State shared by every handler of the same device table.
"""
import logging
import threading

from ircon import settings
from ircon.address import DeviceAddress
from ircon.codecs import RESET_COMMAND, AttributeCodec
from ircon.connector.base import ConnectionNotConnectedError, ConnectorError, SendFailure
from ircon.connector.socketconn import DeviceConnector
from ircon.protocol.lines import LineWriter, encode_line

logger = logging.getLogger(__name__)


def default_connector_factory(address: DeviceAddress):
    return DeviceConnector(address, settings.connect_timeout, settings.send_timeout)


class SharedDeviceState:
    """
    The connection and attribute cache for one device table, shared by all handlers that have
    the table open.

    The connection is made by the first attach(), and torn down when the last handler detaches
    (or by any detach when eager_close is set). A failed connect is final: the share refuses
    further attaches and sends for the rest of its life, without retrying.

    Every cache access and every send happens under the share's lock. Lines are handed to a
    LineWriter, which writes them to the socket from its own thread.

    :param identifier: the table identifier this share belongs to
    :param address: the device address derived from the identifier
    :param connector_factory: a callable creating the Connector for an address
    :param codec: the AttributeCodec used to encode rows and decode reads
    :param eager_close: tear down the connection on any detach. Defaults to settings.eager_close
    """

    def __init__(self, identifier, address: DeviceAddress, connector_factory=None, codec=None,
                 eager_close=None):
        self.identifier = identifier
        self.address = address
        self.codec = codec or AttributeCodec()
        self.cache = self.codec.new_cache()
        self.connector = (connector_factory or default_connector_factory)(address)
        self.eager_close = settings.eager_close if eager_close is None else eager_close
        self.lock = threading.RLock()
        self.connected = False
        self.connect_failed = False
        self.accessors = 0
        self._writer = None

    @property
    def events(self):
        """ the connector's events - ConnectorConnectedEvent and ConnectorDisconnectedEvent """
        return self.connector.events

    def attach(self):
        """
        Registers a handler with this share, connecting to the device if not connected yet.
        Attaching to a connected share leaves the connection and the cache untouched.
        :raises ConnectorError: if the connection can't be made
        :raises ConnectionNotConnectedError: if an earlier connect failed
        """
        with self.lock:
            if not self.connected:
                self._connect()
            self.accessors += 1

    def _connect(self):
        if self.connect_failed:
            raise ConnectionNotConnectedError("connection to %s failed earlier" % self.address)
        try:
            self.connector.connect()
        except ConnectorError:
            self.connect_failed = True
            raise
        self._writer = LineWriter(self.connector.conduit)
        self._writer.name = 'line-writer %s' % self.address
        self._writer.start()
        self.cache.reset()
        self.connected = True

    def detach(self):
        """
        Unregisters a handler. The connection is closed when no handlers remain, or at once if
        eager_close is set - even when other handlers still use the share.
        :return: True if the connection was closed
        """
        with self.lock:
            if self.accessors > 0:
                self.accessors -= 1
            if self.accessors and not self.eager_close:
                return False
            self.accessors = 0
            return self._disconnect()

    def _disconnect(self):
        if not self.connected:
            return False
        self.connected = False
        writer = self._writer
        self._writer = None
        try:
            writer.close()
            writer.raise_failure()
        except SendFailure as e:
            logger.warning("lines to %s were lost before closing: %s" % (self.address, e))
        finally:
            self.connector.disconnect()
        return True

    def check_connected(self):
        if not self.connected:
            raise ConnectionNotConnectedError("%s is not connected" % self.identifier)

    def send(self, line):
        """
        Queues a complete line for the device.
        :raises ConnectionNotConnectedError: if the share isn't connected
        :raises SendFailure: if an earlier line was lost. The connection is closed.
        """
        with self.lock:
            self.check_connected()
            try:
                self._writer.put(line)
            except SendFailure:
                self._disconnect()
                raise

    def write(self, column_names, row):
        """
        Encodes a row, updating the cache, and sends the resulting line.
        :param column_names: the table's columns in schema order
        :param row: mapping of column name to value
        :return: the line sent
        :raises InvalidValue: if a recognized column holds text the device can't receive. Nothing is
            cached or sent.
        """
        with self.lock:
            self.check_connected()
            line = encode_line(self.codec.encode_row(column_names, row, self.cache))
            logger.debug("%s <- %r" % (self.identifier, line))
            self.send(line)
            return line

    def reset(self):
        """
        Returns every attribute to UNKNOWN and sends the reset command.
        """
        with self.lock:
            self.check_connected()
            self.cache.reset()
            logger.debug("%s reset" % self.identifier)
            self.send(RESET_COMMAND)

    def read(self, column_names) -> dict:
        """ projects the cache onto the given columns """
        with self.lock:
            return self.codec.decode_row(self.cache, column_names)

    def flush(self):
        """
        Waits until the queued lines have been written.
        :raises SendFailure: if a line could not be written. The connection is closed.
        """
        writer = self._writer
        if writer is None:
            return
        try:
            writer.flush()
        except SendFailure:
            with self.lock:
                self._disconnect()
            raise

    def destroy(self):
        """ closes the connection regardless of the handlers still attached """
        with self.lock:
            self.accessors = 0
            self._disconnect()


class ShareRegistry:
    """
    Maps table identifiers to their SharedDeviceState. Concurrent acquires of the same
    identifier get the same share. A share lives until release() is called for it, which the
    engine does when the table is dropped or evicted.

    :param share_factory: callable(identifier, address) creating a share
    """

    def __init__(self, share_factory=SharedDeviceState):
        self._share_factory = share_factory
        self._shares = {}
        self._lock = threading.Lock()

    def acquire(self, identifier, address: DeviceAddress) -> SharedDeviceState:
        """ fetches the share for the identifier, creating it on first use """
        with self._lock:
            share = self._shares.get(identifier)
            if share is None:
                share = self._share_factory(identifier, address)
                self._shares[identifier] = share
            return share

    def get(self, identifier):
        with self._lock:
            return self._shares.get(identifier)

    def release(self, identifier):
        """
        Removes the share for the identifier and closes its connection.
        :return: True if there was a share
        """
        with self._lock:
            share = self._shares.pop(identifier, None)
        if share is None:
            return False
        share.destroy()
        return True

    def release_all(self):
        for identifier in self.identifiers():
            self.release(identifier)

    def identifiers(self):
        with self._lock:
            return tuple(self._shares)

    def __contains__(self, identifier):
        with self._lock:
            return identifier in self._shares

    def __len__(self):
        with self._lock:
            return len(self._shares)
