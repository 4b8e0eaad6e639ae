#    Licensed under the Apache License, Version 2.0 (the "License"); you may
#    not use this file except in compliance with the License. You may obtain
#    a copy of the License at
#
#         http://www.apache.org/licenses/LICENSE-2.0
#
#    Unless required by applicable law or agreed to in writing, software
#    distributed under the License is distributed on an "AS IS" BASIS, WITHOUT
#    WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the
#    License for the specific language governing permissions and limitations
#    under the License.

import ddt

from iscsi_attach.initiator import device
from iscsi_attach.tests import base


@ddt.ddt
class DeviceTestCase(base.TestCase):
    def test_defaults(self):
        dev = device.Device(target_iqn='iqn.test:1', portal='10.0.0.1:3260')
        self.assertEqual('default', dev.iface)
        self.assertEqual(0, dev.lun)
        self.assertFalse(dev.use_chap)
        self.assertEqual('', dev.path)
        self.assertEqual('', dev.multipath_device)
        self.assertEqual([], dev.warnings)
        self.assertFalse(dev.attached)

    def test_negative_lun(self):
        self.assertRaises(ValueError, device.Device, lun=-1)

    def test_lun_string(self):
        self.assertEqual(3, device.Device(lun='3').lun)

    def test_set_multipath_device_without_path(self):
        dev = device.Device(target_iqn='iqn.test:1')
        self.assertRaises(ValueError, dev.set_multipath_device,
                          '/dev/mapper/mpatha')
        self.assertEqual('', dev.multipath_device)

    def test_set_multipath_device(self):
        dev = device.Device(target_iqn='iqn.test:1', path='/dev/sdb')
        dev.set_multipath_device('/dev/mapper/mpatha')
        self.assertEqual('/dev/mapper/mpatha', dev.multipath_device)
        self.assertTrue(dev.attached)

    def test_multipath_device_without_path(self):
        self.assertRaises(ValueError, device.Device, target_iqn='iqn.test:1',
                          multipath_device='/dev/mapper/mpatha')

    def test_multipath_device_with_path(self):
        dev = device.Device(target_iqn='iqn.test:1', path='/dev/sdb',
                            multipath_device='/dev/mapper/mpatha')
        self.assertEqual('/dev/mapper/mpatha', dev.multipath_device)

    def test_repr_masks_password(self):
        dev = device.Device(target_iqn='iqn.test:1', use_chap=True,
                            chap_login='user', chap_password='secret')
        self.assertNotIn('secret', repr(dev))
        self.assertIn('user', repr(dev))

    def test_equality(self):
        self.assertEqual(device.Device(target_iqn='iqn.test:1', lun=1),
                         device.Device(target_iqn='iqn.test:1', lun=1))
        self.assertNotEqual(device.Device(target_iqn='iqn.test:1', lun=1),
                            device.Device(target_iqn='iqn.test:1', lun=2))

    @ddt.data(('CHAP', True), ('chap', True), (None, False), ('', False))
    @ddt.unpack
    def test_from_connection_properties(self, auth_method, use_chap):
        props = {'target_iqn': 'iqn.test:1',
                 'target_portal': '10.0.0.1:3260',
                 'target_lun': 2,
                 'auth_method': auth_method,
                 'auth_username': 'user',
                 'auth_password': 'secret'}
        dev = device.Device.from_connection_properties(props)
        self.assertEqual('iqn.test:1', dev.target_iqn)
        self.assertEqual('10.0.0.1:3260', dev.portal)
        self.assertEqual(2, dev.lun)
        self.assertEqual('default', dev.iface)
        self.assertEqual(use_chap, dev.use_chap)
        self.assertEqual('user', dev.chap_login)
        self.assertEqual('secret', dev.chap_password)


@ddt.ddt
class ConnectionTestCase(base.TestCase):
    def test_from_dict_ignores_unknown(self):
        conn = device.Connection.from_dict({'target_iqn': 'iqn.test:1',
                                            'volume_id': 'vol'})
        self.assertEqual('iqn.test:1', conn.target_iqn)
        self.assertFalse(hasattr(conn, 'volume_id'))

    def test_unknown_field(self):
        self.assertRaises(TypeError, device.Connection, volume_id='vol')

    @ddt.data(('10.0.0.1', '3260', '10.0.0.1:3260'),
              ('10.0.0.1:3260', '3260', '10.0.0.1:3260'),
              ('10.0.0.1:3260', '', '10.0.0.1:3260'))
    @ddt.unpack
    def test_get_portal(self, portal, port, expected):
        conn = device.Connection(portal=portal, port=port)
        self.assertEqual(expected, conn.get_portal())

    def test_to_device(self):
        conn = device.Connection(target_iqn='iqn.test:1',
                                 portal='10.0.0.1', port=3260, lun='4',
                                 filesystem='ext4', chap_enabled=True,
                                 chap_login='user', chap_password='secret',
                                 device='/dev/sdb',
                                 mp_device='/dev/mapper/mpatha')
        dev = conn.to_device(iface='iser')
        self.assertEqual('iqn.test:1', dev.target_iqn)
        self.assertEqual('10.0.0.1:3260', dev.portal)
        self.assertEqual('iser', dev.iface)
        self.assertEqual(4, dev.lun)
        self.assertTrue(dev.use_chap)
        self.assertEqual('user', dev.chap_login)
        self.assertEqual('secret', dev.chap_password)
        self.assertEqual('/dev/sdb', dev.path)
        self.assertEqual('/dev/mapper/mpatha', dev.multipath_device)

    def test_to_device_ignores_mp_device_without_device(self):
        conn = device.Connection(target_iqn='iqn.test:1',
                                 portal='10.0.0.1:3260',
                                 mp_device='/dev/mapper/mpatha')
        dev = conn.to_device()
        self.assertEqual('', dev.path)
        self.assertEqual('', dev.multipath_device)
        self.assertEqual('default', dev.iface)

    def test_repr_masks_password(self):
        conn = device.Connection(chap_login='user', chap_password='secret')
        self.assertNotIn('secret', repr(conn))
