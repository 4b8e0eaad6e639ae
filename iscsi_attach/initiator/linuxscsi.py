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

"""Generic linux scsi subsystem and Multipath utilities.

   Note, this is not iSCSI.
"""
import os
from typing import Optional  # noqa: H301

from oslo_concurrency import processutils as putils
from oslo_config import cfg
from oslo_log import log as logging

from iscsi_attach import exception
from iscsi_attach import executor
from iscsi_attach import initiator
from iscsi_attach import utils

LOG = logging.getLogger(__name__)
CONF = cfg.CONF


class LinuxSCSI(executor.Executor):
    def __init__(self, root_helper, execute=None, conf=None,
                 *args, **kwargs):
        self._conf = CONF if conf is None else conf
        super(LinuxSCSI, self).__init__(root_helper, execute=execute,
                                        *args, **kwargs)

    def wait_for_path(self,
                      volume_path: str,
                      max_retries: int = 0,
                      interval: Optional[float] = None) -> bool:
        """Wait for a path to show up.

        Checks once when max_retries is 0, otherwise checks max_retries
        times with a fixed interval between checks.

        :returns: True as soon as the path exists, False when we gave up.
        """
        if interval is None:
            interval = self._conf.iscsi_attach.path_wait_interval

        @utils.retry(exception.VolumeDeviceNotFound,
                     interval=interval,
                     retries=max(1, max_retries),
                     backoff_rate=1)
        def _wait_for_path():
            LOG.debug("Checking to see if %s exists yet.", volume_path)
            if not os.path.exists(volume_path):
                LOG.debug("%(path)s doesn't exists yet.",
                          {'path': volume_path})
                raise exception.VolumeDeviceNotFound(device=volume_path)
            LOG.debug("%s has shown up.", volume_path)

        try:
            _wait_for_path()
        except exception.VolumeDeviceNotFound:
            return False
        return True

    def find_device_by_target(self, target_iqn: str) -> str:
        """Find the device node of a target in the SCSI device table.

        Uses lsscsi -t, where each line looks like:

            [2:0:0:0]  disk  iqn.2010-10.org.openstack:volume-1,t,0x1  /dev/sdb

        Every line containing the target IQN is a match and the device node
        is the last field.  When several lines match the last one wins.

        :returns: The device node, or an empty string if no line matched.
        :raises DeviceQueryFailed: if lsscsi fails.
        """
        try:
            out = self.run('lsscsi', '-t')
        except putils.ProcessExecutionError as exc:
            LOG.error('Unable to perform lsscsi -t, error: %s', exc)
            raise exception.DeviceQueryFailed.from_process_error(exc) from exc

        device_path = ''
        for entry in out.strip().splitlines():
            if target_iqn in entry:
                fields = entry.split()
                device_path = fields[-1]
        LOG.info('Found lsscsi device for %(iqn)s: %(path)r',
                 {'iqn': target_iqn, 'path': device_path})
        return device_path

    def is_multipath_device(self, device_path: str) -> bool:
        """Check if multipath manages the device.

        Failing to run the check means no multipath, not an error.
        """
        try:
            out = self.run('multipath', '-c', device_path)
        except putils.ProcessExecutionError as exc:
            LOG.error('multipath check of %(path)s failed, multipath not '
                      'running? (exit code %(code)s)',
                      {'path': device_path, 'code': exc.exit_code})
            return False
        LOG.debug('Response from multipath -c %(path)s: %(out)s',
                  {'path': device_path, 'out': out})
        return initiator.MULTIPATH_VALID_MARKER in out

    def find_mapper_device(self, device_path: str) -> str:
        """Return the /dev/mapper node that holds a multipath member device.

        lsblk -n -o name -r lists the device itself on the first line and
        its holder, the multipath map, on the second.

        :raises MapperParseFailed: if the map name cannot be found.
        """
        try:
            out = self.run('lsblk', device_path, '-n', '-o', 'name', '-r')
        except putils.ProcessExecutionError as exc:
            LOG.error('Unable to find mpath device due to lsblk error: %s',
                      exc)
            raise exception.MapperParseFailed(
                device=device_path, output=exc.stderr) from exc

        lines = out.strip().splitlines()
        if len(lines) < 2:
            LOG.error('Unable to parse lsblk output %s', lines)
            raise exception.MapperParseFailed(device=device_path, output=out)

        mapper_device = initiator.MAPPER_PATH_PREFIX + lines[1].strip()
        LOG.info('Parsed %(lines)s to extract mp device: %(mpdev)s',
                 {'lines': lines, 'mpdev': mapper_device})
        return mapper_device
