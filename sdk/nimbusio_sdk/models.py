"""
Parameter and response types for the nimbus.io SDK.

Parameters are frozen dataclasses with explicit optional fields; leaving
a field unset disables the corresponding feature. Response bodies are
validated with strict pydantic models so that a malformed reply surfaces
as a DecodeError instead of a silent default.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr


@dataclass(frozen=True)
class ConjoinedParams:
    """Ties an archive call to a conjoined session.

    Attributes:
        conjoined_identifier: Identifier returned by start_conjoined
        conjoined_part: Caller-assigned part number (not validated)
    """

    conjoined_identifier: str
    conjoined_part: int


@dataclass(frozen=True)
class RetrieveParams:
    """Optional arguments to retrieve.

    Attributes:
        version_identifier: Retrieve this version instead of the latest
        slice_offset: First byte to return (0 = start of object)
        slice_size: Number of bytes to return (0 = to end of object)
        modified_since: Recognised but not implemented
        unmodified_since: Recognised but not implemented
    """

    version_identifier: str | None = None
    slice_offset: int = 0
    slice_size: int = 0
    modified_since: datetime | None = None
    unmodified_since: datetime | None = None

    @property
    def is_slice(self) -> bool:
        return self.slice_offset > 0 or self.slice_size > 0

    def range_header(self) -> str | None:
        """Value for the range header, or None for a whole-object read."""
        if not self.is_slice:
            return None
        if self.slice_size > 0:
            return f"bytes={self.slice_offset}-{self.slice_offset + self.slice_size - 1}"
        return f"bytes={self.slice_offset}-"


class _ServiceReply(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class ConjoinedStartResult(_ServiceReply):
    conjoined_identifier: StrictStr = Field(min_length=1)


class ArchiveResult(_ServiceReply):
    version_identifier: StrictStr


class SuccessResult(_ServiceReply):
    success: StrictBool
