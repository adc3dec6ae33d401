import unittest
from unittest.mock import Mock, patch

from hamcrest import assert_that, instance_of, is_, none, same_instance

from ircon.engine import BridgeEngine
from ircon.share import ShareRegistry
from ircon.table import READ_ONLY, BridgeTable, TableShare


class BridgeEngineTest(unittest.TestCase):

    def setUp(self):
        self.registry = Mock(spec=ShareRegistry)
        self.sut = BridgeEngine(self.registry)

    def test_default_registry(self):
        assert_that(BridgeEngine().registry, is_(instance_of(ShareRegistry)))

    def test_create_handler(self):
        table_share = TableShare('host:1', ['mode'])
        handler = self.sut.create_handler(table_share)
        assert_that(handler, is_(instance_of(BridgeTable)))
        assert_that(handler.table_share, is_(same_instance(table_share)))
        assert_that(handler.registry, is_(same_instance(self.registry)))

    def test_handler_capabilities(self):
        sut = BridgeEngine(self.registry, READ_ONLY)
        assert_that(sut.create_handler(TableShare('host:1', ['mode'])).capabilities, is_(READ_ONLY))

    def test_drop_share(self):
        self.registry.release.return_value = True
        self.sut.drop_share('host:1')
        self.registry.release.assert_called_once_with('host:1')

    def test_shutdown(self):
        self.sut.shutdown()
        self.registry.release_all.assert_called_once_with()

    def test_load_settings(self):
        with patch('ircon.engine.settings') as settings:
            BridgeEngine(self.registry, load_settings=True)
            settings.load.assert_called_once_with()

    def test_system_tables(self):
        assert_that(self.sut.system_database(), is_(none()))
        assert_that(self.sut.is_supported_system_table('mysql', 'user', False), is_(False))
        assert_that(self.sut.name, is_('IRCON'))


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
