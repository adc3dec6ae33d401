import logging

from ircon import settings
from ircon.share import ShareRegistry
from ircon.table import BridgeTable, Capabilities, TableShare

logger = logging.getLogger(__name__)


class BridgeEngine:
    """
    The entry point for the database engine. Creates a BridgeTable handler for each table
    the engine opens, and destroys a table's shared device state when the engine discards
    its table definition.

    :param registry: the registry of device shares. A new one is created if not given.
    :param load_settings: when True, ircon.settings is loaded from the ircon*.cfg files.
    """
    name = 'IRCON'

    def __init__(self, registry: ShareRegistry=None, capabilities: Capabilities=None, load_settings=False):
        if load_settings:
            settings.load()
        self.registry = registry if registry is not None else ShareRegistry()
        self.capabilities = capabilities

    def create_handler(self, table_share: TableShare) -> BridgeTable:
        return BridgeTable(table_share, self.registry, self.capabilities)

    def drop_share(self, name):
        """
        Called when the engine discards the definition of a table. Closes the device
        connection for the table, whatever handlers remain.
        """
        if self.registry.release(name):
            logger.info("released device share %s" % name)

    def shutdown(self):
        self.registry.release_all()

    @staticmethod
    def system_database():
        return None

    @staticmethod
    def is_supported_system_table(db, table_name, is_sql_layer_system_table):
        return False
