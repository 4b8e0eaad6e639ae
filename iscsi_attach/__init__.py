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

from iscsi_attach import opts


def setup(conf=cfg.CONF, **kwargs):
    """Setup the library to be used by the service.

    Services that use their own ConfigOpts instance instead of the global
    one call this with it and then pass it to the connectors as ``conf``.
    """
    opts.set_defaults(conf)
