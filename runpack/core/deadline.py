from __future__ import annotations

import dataclasses
import time
import typing

from runpack.core.errors import TargetTimeoutError


@dataclasses.dataclass
class Deadline:
    label: str
    expires_at: float

    @classmethod
    def after(cls, label: str, seconds: float) -> typing.Self:
        """
        Make a deadline that expires `seconds` from now

        :param label: what is bounded by the deadline (e.g. platform key)
        :type label: str
        :param seconds: time budget
        :type seconds: float
        :return: instance of Deadline
        :rtype: typing.Self
        """
        return cls(label, time.monotonic() + seconds)

    @property
    def remaining(self) -> float:
        return self.expires_at - time.monotonic()

    def check(self) -> None:
        if self.remaining <= 0:
            raise TargetTimeoutError(f"{self.label}: time budget exceeded")
