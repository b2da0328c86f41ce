import os
import platform
import socket
import sys
from typing import Any
from typing import Dict
from typing import List
from typing import Optional

import attr

from apmtrace.internal.utils.cache import callonce


@attr.s(frozen=True)
class ServiceInfo(object):
    name = attr.ib(type=str)
    language = attr.ib(type=Dict[str, str])
    agent = attr.ib(type=Dict[str, str])


@attr.s(frozen=True)
class ProcessInfo(object):
    pid = attr.ib(type=int)
    ppid = attr.ib(type=Optional[int])
    argv = attr.ib(type=List[str])
    title = attr.ib(type=str)


@attr.s(frozen=True)
class SystemInfo(object):
    hostname = attr.ib(type=str)
    platform = attr.ib(type=str)
    architecture = attr.ib(type=str)


@callonce
def _system_info():
    return SystemInfo(
        hostname=socket.gethostname(),
        platform=sys.platform,
        architecture=platform.machine(),
    )


@attr.s(frozen=True)
class Metadata(object):
    """Describes the process being traced."""

    service = attr.ib(type=ServiceInfo)
    process = attr.ib(type=ProcessInfo)
    system = attr.ib(type=SystemInfo)
    labels = attr.ib(type=Dict[str, Any])

    @classmethod
    def build(cls, config):
        from apmtrace import __version__

        return cls(
            service=ServiceInfo(
                name=config.service_name,
                language={"name": "python", "version": platform.python_version()},
                agent={"name": "apmtrace", "version": __version__},
            ),
            process=ProcessInfo(
                pid=os.getpid(),
                ppid=os.getppid() if hasattr(os, "getppid") else None,
                argv=list(sys.argv),
                title=sys.executable,
            ),
            system=_system_info(),
            labels=dict(config.global_labels),
        )
