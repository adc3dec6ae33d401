from ircon.share import SharedDeviceState


class EndOfData(Exception):
    """ The scan has produced all of its rows. This is the normal end of a scan. """


class ScanSession:
    """
    A cursor over the synthetic single-row view of a device table. The row is a projection of
    the share's attribute cache at the time next() is called - the device is never queried.

    A session is not shared between threads. Each begin()/next()/end() bracket produces the row
    once, so a session may be bracketed again.
    """

    def __init__(self, share: SharedDeviceState, column_names):
        self.share = share
        self.column_names = tuple(column_names)
        self.exhausted = False

    def begin(self):
        self.exhausted = False
        return self

    def next(self) -> dict:
        """
        :return: the row, as a mapping from column name to value
        :raises EndOfData: when the row has already been produced
        """
        if self.exhausted:
            raise EndOfData()
        row = self.share.read(self.column_names)
        self.exhausted = True
        return row

    def end(self):
        self.exhausted = True

    def __iter__(self):
        while True:
            try:
                yield self.next()
            except EndOfData:
                return

    def __enter__(self):
        return self.begin()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.end()
