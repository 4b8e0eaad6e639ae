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


import abc

from oslo_config import cfg

from iscsi_attach import executor
from iscsi_attach.initiator import linuxscsi


class InitiatorConnector(executor.Executor, metaclass=abc.ABCMeta):

    def __init__(self, root_helper, execute=None, conf=None,
                 *args, **kwargs):
        # Services with their own ConfigOpts pass it after calling
        # iscsi_attach.setup on it
        self._conf = cfg.CONF if conf is None else conf
        self._linuxscsi = linuxscsi.LinuxSCSI(root_helper, execute=execute,
                                              conf=self._conf)
        super(InitiatorConnector, self).__init__(root_helper, execute=execute,
                                                 *args, **kwargs)

    def set_execute(self, execute):
        super(InitiatorConnector, self).set_execute(execute)
        self._linuxscsi.set_execute(execute)

    @staticmethod
    @abc.abstractmethod
    def get_connector_properties(root_helper, *args, **kwargs):
        """The generic connector properties."""
        pass

    @abc.abstractmethod
    def connect_volume(self, device, strict=False):
        """Connect to a volume.

        The device describes the information needed by the specific protocol
        to make the connection.  It is updated in place and returned, its
        path is empty if the volume could not be attached.

        :param device: The volume to attach.
        :type device: iscsi_attach.initiator.device.Device
        :param strict: Raise errors that are otherwise only recorded in
                       device.warnings.
        :type strict: bool
        :returns: iscsi_attach.initiator.device.Device
        """
        pass

    @abc.abstractmethod
    def get_volume_paths(self, device):
        """Return the list of existing paths for a volume.

        The job here is to find what paths exist on the system right now,
        without trying to connect the volume.

        :param device: The volume we are looking for.
        :type device: iscsi_attach.initiator.device.Device
        :returns: list
        """
        pass

    @abc.abstractmethod
    def get_search_path(self):
        """Return the directory where a Connector looks for volumes.

        :returns: str
        """
        pass
