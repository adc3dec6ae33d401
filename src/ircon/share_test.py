import threading
import unittest
from unittest.mock import Mock, call

import timeout_decorator
from hamcrest import assert_that, calling, has_length, is_, is_not, raises, same_instance

from ircon.address import DeviceAddress
from ircon.codecs import RECOGNIZED_ATTRIBUTES, UNKNOWN, InvalidValue
from ircon.connector.base import ConnectionNotConnectedError, ConnectorError, SendFailure
from ircon.share import SharedDeviceState, ShareRegistry

identifier = '127.0.0.1:9999'
address = DeviceAddress('127.0.0.1', 9999)
all_unknown = dict.fromkeys(RECOGNIZED_ATTRIBUTES, UNKNOWN)


def mock_connector():
    connector = Mock()
    connector.conduit = Mock()
    return connector


class SharedDeviceStateTest(unittest.TestCase):

    def setUp(self):
        self.connector = mock_connector()
        self.factory = Mock(return_value=self.connector)
        self.sut = SharedDeviceState(identifier, address, connector_factory=self.factory, eager_close=False)

    def tearDown(self):
        self.sut.destroy()

    def sent(self):
        self.sut.flush()
        return [args[0] for args, kwargs in self.connector.conduit.send.call_args_list]

    def test_initial_state(self):
        assert_that(self.sut.connected, is_(False))
        assert_that(self.sut.accessors, is_(0))
        assert_that(self.sut.cache.snapshot(), is_(all_unknown))
        self.factory.assert_called_once_with(address)
        assert_that(self.sut.events, is_(self.connector.events))

    def test_attach_connects(self):
        self.sut.attach()
        assert_that(self.sut.connected, is_(True))
        assert_that(self.sut.accessors, is_(1))
        self.connector.connect.assert_called_once_with()

    def test_attach_when_connected_neither_reconnects_nor_resets(self):
        self.sut.attach()
        self.sut.write(['mode'], {'mode': 'cool'})
        self.sut.attach()
        self.connector.connect.assert_called_once_with()
        assert_that(self.sut.cache['mode'], is_('cool'))
        assert_that(self.sut.accessors, is_(2))

    def test_failed_connect_is_final(self):
        self.connector.connect.side_effect = ConnectorError("refused")
        assert_that(calling(self.sut.attach), raises(ConnectorError, 'refused'))
        assert_that(self.sut.connected, is_(False))
        assert_that(self.sut.accessors, is_(0))
        assert_that(calling(self.sut.attach), raises(ConnectionNotConnectedError))
        self.connector.connect.assert_called_once_with()

    def test_write_requires_connection(self):
        assert_that(calling(self.sut.write).with_args(['mode'], {'mode': 'on'}),
                    raises(ConnectionNotConnectedError))
        assert_that(self.sut.cache['mode'], is_(UNKNOWN))
        assert_that(calling(self.sut.reset), raises(ConnectionNotConnectedError))

    @timeout_decorator.timeout(10)
    def test_write_sends_line(self):
        self.sut.attach()
        line = self.sut.write(['mode', 'power'], {'mode': 'on', 'power': ''})
        assert_that(line, is_('mode:on,power:-,\n'))
        assert_that(self.sent(), is_([b'mode:on,power:-,\n']))
        assert_that(self.sut.cache.snapshot(), is_(dict(all_unknown, mode='on')))

    @timeout_decorator.timeout(10)
    def test_write_without_recognized_columns_sends_bare_newline(self):
        self.sut.attach()
        self.sut.write(['id'], {'id': 1})
        assert_that(self.sent(), is_([b'\n']))

    @timeout_decorator.timeout(10)
    def test_reset_sends_fixed_command(self):
        self.sut.attach()
        self.sut.write(list(RECOGNIZED_ATTRIBUTES), {'mode': 'heat', 'temperature': '25', 'power': 'on',
                                                     'angle': '30'})
        self.sut.reset()
        assert_that(self.sut.cache.snapshot(), is_(all_unknown))
        assert_that(self.sent()[-1], is_(b'mode:-,\n'))

    def test_read_projects_cache(self):
        self.sut.cache['angle'] = '15'
        assert_that(self.sut.read(['angle', 'mode', 'x']), is_({'angle': '15', 'mode': UNKNOWN, 'x': UNKNOWN}))

    @timeout_decorator.timeout(10)
    def test_last_detach_disconnects(self):
        self.sut.attach()
        self.sut.attach()
        assert_that(self.sut.detach(), is_(False))
        self.connector.disconnect.assert_not_called()
        assert_that(self.sut.detach(), is_(True))
        self.connector.disconnect.assert_called_once_with()
        assert_that(self.sut.connected, is_(False))

    @timeout_decorator.timeout(10)
    def test_eager_close_disconnects_on_first_detach(self):
        self.sut.eager_close = True
        self.sut.attach()
        self.sut.attach()
        assert_that(self.sut.detach(), is_(True))
        assert_that(self.sut.connected, is_(False))
        assert_that(self.sut.accessors, is_(0))

    @timeout_decorator.timeout(10)
    def test_detach_sends_pending_lines_first(self):
        self.sut.attach()
        for i in range(10):
            self.sut.write(['angle'], {'angle': i})
        self.sut.detach()
        assert_that(self.connector.conduit.send.call_args_list, has_length(10))
        assert_that(self.connector.conduit.send.call_args_list[-1], is_(call(b'angle:9,\n')))

    @timeout_decorator.timeout(10)
    def test_reattach_after_close_reconnects(self):
        self.sut.attach()
        self.sut.write(['mode'], {'mode': 'dry'})
        self.sut.detach()
        self.sut.attach()
        assert_that(self.connector.connect.call_count, is_(2))
        assert_that(self.sut.cache['mode'], is_(UNKNOWN))

    @timeout_decorator.timeout(10)
    def test_non_ascii_value_is_rejected_without_touching_cache(self):
        self.sut.attach()
        assert_that(calling(self.sut.write).with_args(['mode'], {'mode': 'café'}), raises(InvalidValue))
        assert_that(self.sut.cache['mode'], is_(UNKNOWN))
        assert_that(self.sut.connected, is_(True))
        line = self.sut.write(['mode', 'power'], {'mode': '', 'power': 'on'})
        assert_that(line, is_('mode:-,power:on,\n'))
        assert_that(self.sent(), is_([b'mode:-,power:on,\n']))

    @timeout_decorator.timeout(10)
    def test_send_failure_surfaces_and_disconnects(self):
        self.connector.conduit.send.side_effect = OSError("broken pipe")
        self.sut.attach()
        self.sut.write(['mode'], {'mode': 'on'})
        assert_that(calling(self.sut.flush), raises(SendFailure))
        assert_that(self.sut.connected, is_(False))
        self.connector.disconnect.assert_called_once_with()
        assert_that(calling(self.sut.write).with_args(['mode'], {'mode': 'off'}),
                    raises(ConnectionNotConnectedError))

    @timeout_decorator.timeout(20)
    def test_concurrent_writers(self):
        self.sut.attach()
        columns = ['mode', 'power']

        def writer(n):
            for i in range(25):
                self.sut.write(columns, {'mode': 'm%d' % n, 'power': 'p%d' % i})

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        sent = self.sent()
        assert_that(sent, has_length(200))
        for line in sent:
            assert_that(line.startswith(b'mode:m') and line.endswith(b',\n'), is_(True), line)
        last = sent[-1].decode().rstrip(',\n').split(',')
        assert_that(self.sut.cache['mode'], is_(last[0].split(':')[1]))
        assert_that(self.sut.cache['power'], is_(last[1].split(':')[1]))


class ShareRegistryTest(unittest.TestCase):

    def setUp(self):
        self.factory = Mock(side_effect=lambda identifier, address: Mock(identifier=identifier))
        self.sut = ShareRegistry(self.factory)

    def test_acquire_creates_once(self):
        first = self.sut.acquire(identifier, address)
        second = self.sut.acquire(identifier, address)
        assert_that(first, is_(same_instance(second)))
        self.factory.assert_called_once_with(identifier, address)
        assert_that(identifier in self.sut, is_(True))
        assert_that(len(self.sut), is_(1))

    def test_distinct_identifiers(self):
        first = self.sut.acquire('a', DeviceAddress('a', 1))
        second = self.sut.acquire('b', DeviceAddress('b', 1))
        assert_that(first, is_not(same_instance(second)))
        assert_that(set(self.sut.identifiers()), is_({'a', 'b'}))

    def test_release_destroys(self):
        share = self.sut.acquire(identifier, address)
        assert_that(self.sut.release(identifier), is_(True))
        share.destroy.assert_called_once_with()
        assert_that(self.sut.get(identifier), is_(None))
        assert_that(self.sut.release(identifier), is_(False))

    def test_release_all(self):
        shares = [self.sut.acquire(name, address) for name in ('a', 'b', 'c')]
        self.sut.release_all()
        assert_that(len(self.sut), is_(0))
        for share in shares:
            share.destroy.assert_called_once_with()

    @timeout_decorator.timeout(10)
    def test_concurrent_acquire_converges(self):
        results = []
        barrier = threading.Barrier(10)

        def acquire():
            barrier.wait()
            results.append(self.sut.acquire(identifier, address))

        threads = [threading.Thread(target=acquire) for i in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert_that(len({id(share) for share in results}), is_(1))
        self.factory.assert_called_once_with(identifier, address)


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
