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

"""Exceptions for the iscsi_attach library."""

import traceback
from typing import Iterable, List, Optional  # noqa: H301

from oslo_concurrency import processutils as putils
from oslo_log import log as logging

from iscsi_attach.i18n import _


LOG = logging.getLogger(__name__)


class BrickException(Exception):
    """Base iscsi_attach Exception

    To correctly use this class, inherit from it and define
    a 'message' property. That message will get printf'd
    with the keyword arguments provided to the constructor.
    """
    message = _("An unknown exception occurred.")
    code = 500

    def __init__(self, message=None, **kwargs):
        self.kwargs = kwargs

        if 'code' not in self.kwargs:
            self.kwargs['code'] = self.code

        if not message:
            try:
                message = self.message % kwargs

            except Exception:
                # kwargs doesn't match a variable in the message
                # log the issue and the kwargs
                LOG.exception("Exception in string format operation. "
                              "msg='%s'", self.message)
                for name, value in kwargs.items():
                    LOG.error("%(name)s: %(value)s", {'name': name,
                                                      'value': value})

                # at least get the core message out if something happened
                message = self.message

        # Put the message in 'msg' so that we can access it.  If we have it in
        # message it will be overshadowed by the class' message attribute
        self.msg = message
        super(BrickException, self).__init__(message)


class CommandFailed(BrickException):
    """An external command needed by a workflow step failed.

    Use ``from_process_error`` to carry the failing command's exit code and
    output verbatim.
    """
    message = _("Command %(cmd)s failed with exit code %(exit_code)s. "
                "Stdout: %(stdout)r, Stderr: %(stderr)r")

    @classmethod
    def from_process_error(cls, exc, **kwargs):
        kwargs.setdefault('cmd', getattr(exc, 'cmd', None))
        kwargs.setdefault('exit_code', getattr(exc, 'exit_code', None))
        kwargs.setdefault('stdout', getattr(exc, 'stdout', None))
        kwargs.setdefault('stderr', getattr(exc, 'stderr', None))
        return cls(**kwargs)


class IdentityUnavailable(CommandFailed):
    message = _("Unable to read initiator names from %(file_path)s "
                "(exit code %(exit_code)s): %(stdout)r %(stderr)r")


class InterfaceUnavailable(CommandFailed):
    message = _("iSCSI interface %(iface)s is not usable "
                "(exit code %(exit_code)s): %(stdout)r %(stderr)r")


class NodeCreateFailed(CommandFailed):
    message = _("Unable to create node record for target %(target_iqn)s on "
                "portal %(portal)s (exit code %(exit_code)s): "
                "%(stdout)r %(stderr)r")


class AuthConfigFailed(CommandFailed):
    message = _("Unable to set %(field)s on node record for target "
                "%(target_iqn)s on portal %(portal)s "
                "(exit code %(exit_code)s): %(stdout)r %(stderr)r")


class LoginFailed(CommandFailed):
    message = _("Unable to login to target %(target_iqn)s on portal "
                "%(portal)s (exit code %(exit_code)s): "
                "%(stdout)r %(stderr)r")


class DeviceQueryFailed(CommandFailed):
    message = _("Unable to list SCSI devices (exit code %(exit_code)s): "
                "%(stdout)r %(stderr)r")


class MapperParseFailed(BrickException):
    message = _("Unable to find the multipath mapper name for %(device)s "
                "in lsblk output %(output)r")


class VolumeDeviceNotFound(BrickException):
    message = _("Volume device not found at %(device)s.")


class ExceptionChainer(BrickException):
    """A Exception that can contain a group of exceptions.

    This exception serves as a container for exceptions, useful when we want to
    store all exceptions that happened during a series of steps and then raise
    them all together as one.

    The representation of the exception will include all exceptions and their
    tracebacks.

    This class also includes a context manager for convenience, one that will
    support both swallowing the exception as if nothing had happened and
    raising the exception.  In both cases the exception will be stored.

    If a message is provided to the context manager it will be formatted and
    logged with warning level.
    """
    def __init__(self, *args, **kwargs):
        self._exceptions: List[tuple] = []
        self._repr: Optional[str] = None
        self._exc_msg_args = []
        super(ExceptionChainer, self).__init__(*args, **kwargs)

    def __repr__(self):
        # Since generating the representation can be slow we cache it
        if not self._repr:
            tracebacks = (
                ''.join(traceback.format_exception(*e)).replace('\n', '\n\t')
                for e in self._exceptions)
            self._repr = '\n'.join('\nChained Exception #%s\n\t%s' % (i + 1, t)
                                   for i, t in enumerate(tracebacks))
        return self._repr

    __str__ = __repr__

    def __bool__(self) -> bool:
        # We want to be able to do boolean checks on the exception
        return bool(self._exceptions)

    @property
    def exceptions(self) -> list:
        """Stored exception instances, in the order they happened."""
        return [exc_val for _exc_type, exc_val, _exc_tb in self._exceptions]

    def add_exception(self, exc_type, exc_val, exc_tb) -> None:
        # Clear the representation cache
        self._repr = None
        self._exceptions.append((exc_type, exc_val, exc_tb))

    def context(self,
                catch_exception: bool,
                msg: str = '',
                *msg_args: Iterable):
        self._catch_exception = catch_exception
        self._exc_msg = msg
        self._exc_msg_args = list(msg_args)
        return self

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.add_exception(exc_type, exc_val, exc_tb)
            if self._exc_msg:
                LOG.warning(self._exc_msg, *self._exc_msg_args)
            if self._catch_exception:
                return True


class ExecutionTimeout(putils.ProcessExecutionError):
    pass
