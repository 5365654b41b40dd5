"""Instance read model for the Querying bounded context."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol, runtime_checkable

from langcodes import Language

from query.domain.value_objects import UNDEFINED_LANGUAGE, SetupStep


@runtime_checkable
class RequestedInstance(Protocol):
    """Narrow view of an instance used by authorization and branding code."""

    @property
    def instance_id(self) -> str: ...

    @property
    def project_id(self) -> str: ...

    @property
    def console_client_id(self) -> str: ...

    @property
    def console_application_id(self) -> str: ...

    @property
    def requested_domain(self) -> str: ...


@dataclass
class Instance:
    """Snapshot of one instance as projected into the read table.

    Instances are created and mutated by the write side only. ``host`` is
    never stored; it echoes the host of the request that loaded the snapshot.
    """

    id: str
    creation_date: datetime
    change_date: datetime
    sequence: int
    global_org_id: str = ""
    iam_project_id: str = ""
    console_id: str = ""
    console_app_id: str = ""
    default_language: Language = field(default_factory=lambda: UNDEFINED_LANGUAGE)
    setup_started: SetupStep = SetupStep.UNSPECIFIED
    setup_done: SetupStep = SetupStep.UNSPECIFIED
    host: str = ""

    @property
    def instance_id(self) -> str:
        return self.id

    @property
    def project_id(self) -> str:
        return self.iam_project_id

    @property
    def console_client_id(self) -> str:
        return self.console_id

    @property
    def console_application_id(self) -> str:
        return self.console_app_id

    @property
    def requested_domain(self) -> str:
        return self.host


@dataclass
class Instances:
    """A page of instances plus the total number of matches."""

    instances: list[Instance] = field(default_factory=list)
    count: int = 0
