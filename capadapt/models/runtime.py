"""Gate and foreign runtime statistics."""

from pydantic import BaseModel, Field


class GateStats(BaseModel):
    """Snapshot of gate usage."""
    acquisitions: int = Field(default=0, description="Outermost gate entries since creation")
    held: bool = Field(default=False, description="Whether some thread holds the gate right now")
    holder: str | None = Field(default=None, description="Name of the holding thread")
    depth: int = Field(default=0, description="Re-entry depth of the current holder")


class RuntimeStats(BaseModel):
    """Snapshot of a foreign runtime's object table."""
    runtime: str
    live_objects: int = 0
    native_refs: int = Field(default=0, description="Counts held by native handles")
    pending_releases: int = Field(default=0, description="Releases queued by finalizers")
    calls: int = 0
    failed_calls: int = 0
