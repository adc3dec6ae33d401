import logging
import socket

from ircon.address import DeviceAddress
from ircon.conduit.base import Conduit
from ircon.conduit.socket_conduit import SocketConduit
from ircon.connector.base import AbstractConnector, ConnectorError

logger = logging.getLogger(__name__)


class DeviceConnector(AbstractConnector):
    """
    A connector that reaches a device over a TCP socket.
    """
    def __init__(self, address: DeviceAddress, connect_timeout=None, send_timeout=None, report_errors=True):
        """
        :param address: the device to connect to
        :param connect_timeout: seconds to wait for the connection, or None to block
        :param send_timeout: seconds a single send may block once connected, or None to block
        :param report_errors: when False, connection failures are only logged at debug level
        """
        super().__init__()
        self.address = address
        self.connect_timeout = connect_timeout
        self.send_timeout = send_timeout
        self._report_errors = report_errors

    @property
    def endpoint(self):
        return self.address

    def _connect(self) -> Conduit:
        sock = None
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            sock.settimeout(self.connect_timeout)
            sock.connect(self.address.as_tuple())
            sock.settimeout(self.send_timeout)
            logger.info("opened socket to %s" % self.address)
            return SocketConduit(sock)
        except socket.error as e:
            method = logger.warning if self._report_errors else logger.debug
            method("error opening socket to %s: %s" % (self.address, e))
            if sock is not None:
                sock.close()
            raise ConnectorError("unable to connect to %s" % self.address) from e
