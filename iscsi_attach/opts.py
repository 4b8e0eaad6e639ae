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
from oslo_config import cfg

from iscsi_attach import initiator


_opts = [
    cfg.IntOpt('attach_path_wait_retries',
               default=initiator.ATTACH_PATH_WAIT_RETRIES,
               min=0,
               help='Number of times to check for the by-path device node '
                    'after logging in to the target. A value of 0 checks '
                    'once without waiting. Default value is 10.'),
    cfg.IntOpt('path_wait_interval',
               default=initiator.PATH_WAIT_INTERVAL,
               min=0,
               help='Fixed time in seconds to wait between two checks for '
                    'a device node. Default value is 2.'),
    cfg.IntOpt('iscsiadm_timeout',
               default=0,
               min=0,
               help='Seconds after which an iscsiadm call is terminated. '
                    '0 means calls are never terminated.'),
    cfg.BoolOpt('rollback_chap_node_on_failure',
                default=False,
                help='Delete the iSCSI node record created for a CHAP login '
                     'when configuring its credentials fails part way. '
                     'By default the partially configured record is left '
                     'on the host.'),
]

cfg.CONF.register_opts(_opts, group='iscsi_attach')


def list_opts():
    """oslo.config.opts entrypoint for sample config generation."""
    return [('iscsi_attach', _opts)]


def set_defaults(conf=cfg.CONF):
    """Make sure our options are registered in the given configuration.

    Called from iscsi_attach setup for services that use their own
    ConfigOpts instance instead of the global one, connectors built with
    that instance read their options from it.
    """
    if conf is not cfg.CONF:
        conf.register_opts(_opts, group='iscsi_attach')
