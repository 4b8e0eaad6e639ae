#
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
"""iscsi_attach's Initiator module.

The initator module contains the capabilities for discovering the initiator
information as well as logging in to iSCSI targets and locating the block
devices they expose on this host.
"""

INITIATOR_NAME_FILE = '/etc/iscsi/initiatorname.iscsi'
INITIATOR_NAME_KEY = 'InitiatorName='

# udev names the node without a separator between the IQN and "lun"
DEVICE_PATH_TEMPLATE = ('/dev/disk/by-path/'
                        'ip-%(portal)s-iscsi-%(iqn)slun-%(lun)s')
MAPPER_PATH_PREFIX = '/dev/mapper/'
MULTIPATH_VALID_MARKER = 'is a valid multipath device'

DEFAULT_IFACE = 'default'

PATH_WAIT_INTERVAL = 2
ATTACH_PATH_WAIT_RETRIES = 10
