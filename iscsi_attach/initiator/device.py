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

"""Records describing an iSCSI attachment."""

from typing import List, Optional  # noqa: H301

from oslo_utils import strutils

from iscsi_attach import initiator


class Device(object):
    """One attached or attachable iSCSI block device.

    The caller fills in the identity and connection fields.  `path` and
    `multipath_device` start empty and are filled in place by the
    ISCSIConnector: `path` by the attach workflow or the device lookup,
    `multipath_device` only by the multipath resolution, and never while
    `path` is empty.

    `warnings` holds the errors a best-effort call decided not to raise.
    """

    def __init__(self,
                 target_iqn: str = '',
                 portal: str = '',
                 iface: str = initiator.DEFAULT_IFACE,
                 lun: int = 0,
                 use_chap: bool = False,
                 chap_login: str = '',
                 chap_password: str = '',
                 path: str = '',
                 multipath_device: str = '') -> None:
        if int(lun) < 0:
            raise ValueError('LUN must be a non-negative integer, got %s' %
                             lun)
        self.target_iqn = target_iqn
        self.portal = portal
        self.iface = iface
        self.lun = int(lun)
        self.use_chap = use_chap
        self.chap_login = chap_login
        self.chap_password = chap_password
        self.path = path
        self.multipath_device = ''
        self.set_multipath_device(multipath_device)
        self.warnings: List[Exception] = []

    def __repr__(self) -> str:
        return strutils.mask_password(
            'Device(target_iqn=%r, portal=%r, iface=%r, lun=%r, '
            'use_chap=%r, chap_login=%r, chap_password=%r, path=%r, '
            'multipath_device=%r)' %
            (self.target_iqn, self.portal, self.iface, self.lun,
             self.use_chap, self.chap_login, self.chap_password, self.path,
             self.multipath_device))

    __str__ = __repr__

    def __eq__(self, other) -> bool:
        if not isinstance(other, Device):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    @property
    def attached(self) -> bool:
        return bool(self.path)

    def set_multipath_device(self, multipath_device: str) -> None:
        if multipath_device and not self.path:
            raise ValueError('Cannot set a multipath device on a device '
                             'without a path')
        self.multipath_device = multipath_device

    def to_dict(self) -> dict:
        return {'target_iqn': self.target_iqn,
                'portal': self.portal,
                'iface': self.iface,
                'lun': self.lun,
                'use_chap': self.use_chap,
                'chap_login': self.chap_login,
                'chap_password': self.chap_password,
                'path': self.path,
                'multipath_device': self.multipath_device}

    @classmethod
    def from_connection_properties(cls, props: dict) -> 'Device':
        """Build a Device from a connection properties dictionary.

        Accepts the usual iSCSI connection information keys:

        {'target_iqn': 'iqn.2010-10.org.openstack:volume-00000001',
         'target_portal': '10.0.2.15:3260',
         'target_lun': 1,
         'auth_method': 'CHAP',
         'auth_username': 'user',
         'auth_password': 'secret',
         'iface': 'default'}
        """
        auth_method = props.get('auth_method') or ''
        return cls(target_iqn=props['target_iqn'],
                   portal=props['target_portal'],
                   iface=props.get('iface') or initiator.DEFAULT_IFACE,
                   lun=props.get('target_lun', 0),
                   use_chap=auth_method.upper() == 'CHAP',
                   chap_login=props.get('auth_username', ''),
                   chap_password=props.get('auth_password', ''),
                   path=props.get('device_path', ''))


class Connection(object):
    """Caller facing description of an iSCSI connection.

    A superset of the Device connection fields with the SCSI host and
    channel, a filesystem type hint and the CHAP flag.  It is only an input
    record, `to_device` gives the Device the workflow operates on.
    """

    _FIELDS = ('device', 'iqn', 'mp_device', 'host', 'channel',
               'filesystem', 'chap_enabled', 'portal', 'port', 'target_iqn',
               'lun', 'chap_login', 'chap_password')

    def __init__(self, **kwargs) -> None:
        unknown = set(kwargs) - set(self._FIELDS)
        if unknown:
            raise TypeError('Unknown connection fields: %s' %
                            ', '.join(sorted(unknown)))
        self.device: str = kwargs.get('device', '')
        self.iqn: str = kwargs.get('iqn', '')
        self.mp_device: str = kwargs.get('mp_device', '')
        self.host: str = kwargs.get('host', '')
        self.channel: str = kwargs.get('channel', '')
        self.filesystem: str = kwargs.get('filesystem', '')
        self.chap_enabled: bool = bool(kwargs.get('chap_enabled', False))
        self.portal: str = kwargs.get('portal', '')
        self.port: str = str(kwargs.get('port', ''))
        self.target_iqn: str = kwargs.get('target_iqn', '')
        self.lun: str = str(kwargs.get('lun', '0'))
        self.chap_login: str = kwargs.get('chap_login', '')
        self.chap_password: str = kwargs.get('chap_password', '')

    def __repr__(self) -> str:
        fields = ', '.join('%s=%r' % (name, getattr(self, name))
                           for name in self._FIELDS)
        return strutils.mask_password('Connection(%s)' % fields)

    @classmethod
    def from_dict(cls, data: dict) -> 'Connection':
        return cls(**{key: value for key, value in data.items()
                      if key in cls._FIELDS})

    def get_portal(self) -> str:
        """Return the portal as host:port.

        The port may be given separately or already be part of the portal.
        """
        if self.port and not self.portal.endswith(':' + self.port):
            return '%s:%s' % (self.portal, self.port)
        return self.portal

    def to_device(self, iface: Optional[str] = None) -> Device:
        device = Device(target_iqn=self.target_iqn,
                        portal=self.get_portal(),
                        iface=iface or initiator.DEFAULT_IFACE,
                        lun=int(self.lun or 0),
                        use_chap=self.chap_enabled,
                        chap_login=self.chap_login,
                        chap_password=self.chap_password,
                        path=self.device)
        if self.device:
            device.set_multipath_device(self.mp_device)
        return device
