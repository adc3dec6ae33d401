from abc import abstractmethod


class Conduit:
    """
    A conduit carries bytes to a device. The device protocol is one-way, so only the
    sending side is modelled.
    """

    @property
    @abstractmethod
    def target(self):
        """ the underlying resource, such as the socket """
        raise NotImplementedError

    @property
    @abstractmethod
    def open(self) -> bool:
        """ determines if this conduit is open. Data can only be sent while open. """
        raise NotImplementedError

    @abstractmethod
    def send(self, data: bytes):
        """
        Sends all of the given bytes, or raises OSError.
        """
        raise NotImplementedError

    @abstractmethod
    def close(self):
        """
        Shuts down the channel and releases the resource.
        """
        raise NotImplementedError
