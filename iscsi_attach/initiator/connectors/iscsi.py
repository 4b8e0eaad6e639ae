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

import re
from typing import List, Optional, Tuple  # noqa: H301

from oslo_concurrency import processutils as putils
from oslo_log import log as logging
from oslo_utils import excutils
from oslo_utils import strutils

from iscsi_attach import exception
from iscsi_attach import initiator
from iscsi_attach.initiator import device as device_mod
from iscsi_attach.initiator import initiator_connector
from iscsi_attach import utils

LOG = logging.getLogger(__name__)

# mask_password doesn't know about iscsiadm's --value= syntax and drops
# the = of the command line form
_CHAP_SECRET_REGEX = re.compile(r"(password'?,?\s+'?--value)=?[^\s']+")


def _mask_password(message):
    return _CHAP_SECRET_REGEX.sub(r"\1=***", strutils.mask_password(message))


def _masked_error(exc):
    return putils.ProcessExecutionError(
        stdout=exc.stdout, stderr=exc.stderr, exit_code=exc.exit_code,
        cmd=_mask_password(exc.cmd or ''), description=exc.description)


class ISCSIConnector(initiator_connector.InitiatorConnector):
    """Connector class to attach iSCSI volumes."""

    @staticmethod
    def get_connector_properties(root_helper: str, *args, **kwargs) -> dict:
        """The iSCSI connector properties."""
        props = {}
        iscsi = ISCSIConnector(root_helper=root_helper,
                               execute=kwargs.get('execute'),
                               conf=kwargs.get('conf'))
        try:
            initiators = iscsi.get_initiators()
        except exception.IdentityUnavailable:
            LOG.warning("Could not find the iSCSI Initiator File %s",
                        initiator.INITIATOR_NAME_FILE)
            return props

        if initiators:
            props['initiator'] = initiators[0]
            props['initiators'] = initiators
        return props

    def get_search_path(self) -> str:
        """Where do we look for iSCSI based volumes."""
        return '/dev/disk/by-path'

    def get_initiators(self) -> List[str]:
        """Return the initiator names configured on this host.

        Names are returned in file order, duplicates included.

        :raises IdentityUnavailable: if the initiator file cannot be read.
        """
        file_path = initiator.INITIATOR_NAME_FILE
        try:
            lines = self.run('cat', file_path)
        except putils.ProcessExecutionError as exc:
            LOG.error('Unable to gather initiator names: %s', exc)
            raise exception.IdentityUnavailable.from_process_error(
                exc, file_path=file_path) from exc

        key = initiator.INITIATOR_NAME_KEY
        return [line.strip()[len(key):].strip()
                for line in lines.splitlines()
                if line.strip().startswith(key)]

    def get_initiator(self) -> Optional[str]:
        """Return the first configured initiator name, if any."""
        initiators = self.get_initiators()
        return initiators[0] if initiators else None

    def get_device_path(self, device: device_mod.Device) -> str:
        """Where udev creates the device node for a target LUN."""
        return initiator.DEVICE_PATH_TEMPLATE % {'portal': device.portal,
                                                 'iqn': device.target_iqn,
                                                 'lun': device.lun}

    def get_volume_paths(self, device: device_mod.Device) -> list:
        """Get the list of existing paths for a volume.

        Doesn't login or wait, only reports whether the expected device node
        is already there.
        """
        path = self.get_device_path(device)
        if self._linuxscsi.wait_for_path(path, 0):
            return [path]
        return []

    def _iscsiadm_kwargs(self, **kwargs) -> dict:
        kwargs.update(run_as_root=True, root_helper=self._root_helper)
        if self._conf.iscsi_attach.iscsiadm_timeout:
            kwargs['timeout'] = self._conf.iscsi_attach.iscsiadm_timeout
        return kwargs

    def _run_iscsiadm(self, target_iqn: str, portal: str,
                      iscsi_command, **kwargs) -> Tuple[str, str]:
        (out, err) = self._execute('iscsiadm', '-m', 'node', '-T', target_iqn,
                                   '-p', portal, *iscsi_command,
                                   **self._iscsiadm_kwargs(**kwargs))
        msg = ("iscsiadm %(iscsi_command)s: stdout=%(out)s stderr=%(err)s" %
               {'iscsi_command': iscsi_command, 'out': out, 'err': err})
        # don't let passwords be shown in log output
        LOG.debug(_mask_password(msg))

        return (out, err)

    def _iscsiadm_update(self, target_iqn: str, portal: str,
                         property_key: str, property_value: str,
                         **kwargs) -> Tuple[str, str]:
        iscsi_command = ('--op=update', '--name', property_key,
                         '--value=' + property_value)
        return self._run_iscsiadm(target_iqn, portal, iscsi_command,
                                  **kwargs)

    def _run_iscsiadm_bare(self, iscsi_command, **kwargs) -> Tuple[str, str]:
        (out, err) = self._execute('iscsiadm', *iscsi_command,
                                   **self._iscsiadm_kwargs(**kwargs))
        LOG.debug("iscsiadm %(iscsi_command)s: stdout=%(out)s stderr=%(err)s",
                  {'iscsi_command': iscsi_command, 'out': out, 'err': err})
        return (out, err)

    def check_iface(self, iface: str) -> None:
        """Make sure the initiator tools can use the interface.

        :raises InterfaceUnavailable: if iscsiadm can't show the interface.
        """
        try:
            self._run_iscsiadm_bare(('-m', 'iface', '-I', iface, '-o', 'show'))
        except putils.ProcessExecutionError as exc:
            LOG.error('iSCSI unable to read from interface %(iface)s, '
                      'error: %(err)s', {'iface': iface, 'err': exc.stderr})
            raise exception.InterfaceUnavailable.from_process_error(
                exc, iface=iface) from exc

    def login(self, target_iqn: str, portal: str,
              iface: str = initiator.DEFAULT_IFACE) -> None:
        """Login to a target using its existing node record.

        :raises LoginFailed: if iscsiadm can't login.
        """
        LOG.info('Trying to login to iSCSI target %(iqn)s on portal '
                 '%(portal)s (interface %(iface)s)',
                 {'iqn': target_iqn, 'portal': portal, 'iface': iface})
        try:
            self._run_iscsiadm(target_iqn, portal, ('--login',))
        except putils.ProcessExecutionError as exc:
            raise exception.LoginFailed.from_process_error(
                exc, target_iqn=target_iqn, portal=portal) from exc

    def login_with_chap(self, target_iqn: str, portal: str, username: str,
                        password: str,
                        iface: str = initiator.DEFAULT_IFACE) -> None:
        """Create a node record with CHAP credentials and login with it.

        Each step is a separate iscsiadm call and the first failure stops the
        sequence.  Steps that succeeded are not undone, unless
        rollback_chap_node_on_failure is set, in which case a failure while
        setting the credentials deletes the new node record.

        :raises NodeCreateFailed: if the node record can't be created.
        :raises AuthConfigFailed: if a CHAP setting can't be stored.
        :raises LoginFailed: if iscsiadm can't login.
        """
        try:
            self._run_iscsiadm(target_iqn, portal,
                               ('--interface', iface, '--op', 'new'))
        except putils.ProcessExecutionError as exc:
            raise exception.NodeCreateFailed.from_process_error(
                exc, target_iqn=target_iqn, portal=portal) from exc

        try:
            self._set_chap_credentials(target_iqn, portal, username,
                                       password)
        except exception.AuthConfigFailed:
            with excutils.save_and_reraise_exception():
                if self._conf.iscsi_attach.rollback_chap_node_on_failure:
                    self._delete_node_record(target_iqn, portal)

        self.login(target_iqn, portal, iface)

    def _set_chap_credentials(self, target_iqn, portal, username, password):
        for field, value in (('authmethod', 'CHAP'),
                             ('username', username),
                             ('password', password)):
            try:
                self._iscsiadm_update(target_iqn, portal,
                                      'node.session.auth.' + field, value)
            except putils.ProcessExecutionError as exc:
                LOG.error('Output of failed iscsiadm command: %s',
                          strutils.mask_password(exc.stdout or ''))
                # The command line holds the CHAP password
                masked = _masked_error(exc)
                raise exception.AuthConfigFailed.from_process_error(
                    masked, field=field, target_iqn=target_iqn,
                    portal=portal) from masked

    def _delete_node_record(self, target_iqn, portal):
        LOG.info('Deleting node record of %(iqn)s on %(portal)s',
                 {'iqn': target_iqn, 'portal': portal})
        exc = exception.ExceptionChainer()
        with exc.context(True, 'Deleting node record of %s on %s failed',
                         target_iqn, portal):
            self._run_iscsiadm(target_iqn, portal, ('--op', 'delete'))

    def _login(self, device: device_mod.Device) -> None:
        if device.use_chap:
            self.login_with_chap(device.target_iqn, device.portal,
                                 device.chap_login, device.chap_password,
                                 device.iface)
        else:
            self.login(device.target_iqn, device.portal, device.iface)

    @utils.trace
    def get_device(self, target_iqn: str,
                   strict: bool = False) -> device_mod.Device:
        """Find the attached device of a target on this host.

        A device without path means the target is not attached.  Multipath
        members also get their /dev/mapper device.  When the mapper device
        can't be found the raw path is kept and the error is added to the
        device warnings, or raised if strict is set.

        :raises DeviceQueryFailed: if the SCSI device table can't be read.
        :raises MapperParseFailed: in strict mode only.
        """
        dev = device_mod.Device(target_iqn=target_iqn)
        dev.path = self._linuxscsi.find_device_by_target(target_iqn)
        if not dev.path:
            return dev

        if self._linuxscsi.is_multipath_device(dev.path):
            LOG.info('Multipath detected for %s', dev.path)
            try:
                dev.set_multipath_device(
                    self._linuxscsi.find_mapper_device(dev.path))
            except exception.MapperParseFailed as exc:
                if strict:
                    raise
                LOG.warning('Using %(path)s without multipath: %(err)s',
                            {'path': dev.path, 'err': exc})
                dev.warnings.append(exc)
        return dev

    @utils.trace
    def connect_volume(self, device: device_mod.Device,
                       strict: bool = False) -> device_mod.Device:
        """Attach the volume described by the device.

        Safe to call again for an attached volume: if the device node
        already exists no login is attempted.  Otherwise we login and wait
        for the node to show up.

        A failed login doesn't stop us from waiting for the node, since it
        may still show up.  The error is added to device.warnings unless
        strict is set, in which case it is raised.  The device path stays
        empty if the node never showed up.

        :raises InterfaceUnavailable: if the iSCSI interface is not usable.
        :raises NodeCreateFailed, AuthConfigFailed, LoginFailed: in strict
                mode only.
        """
        device.warnings = []
        device.path = ''
        device.multipath_device = ''
        self.check_iface(device.iface)

        path = self.get_device_path(device)
        if self._linuxscsi.wait_for_path(path, 0):
            LOG.info('Volume %s is already attached', path)
            device.path = path
            return device

        try:
            self._login(device)
        except exception.CommandFailed as exc:
            if strict:
                raise
            LOG.warning('Login failed, waiting for %(path)s anyway: %(err)s',
                        {'path': path, 'err': exc})
            device.warnings.append(exc)

        if self._linuxscsi.wait_for_path(
                path, self._conf.iscsi_attach.attach_path_wait_retries):
            device.path = path
        else:
            LOG.warning('Device %s did not show up', path)
        return device
