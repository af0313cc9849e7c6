"""Exception and warning classes raised by protein_surface."""

from __future__ import annotations


class SurfaceError(Exception):
    """Base class for all protein_surface errors."""


class InputError(SurfaceError, ValueError):
    """Malformed user input: structure references, dataset lines, options."""


class DataIntegrityError(SurfaceError, ValueError):
    """Structure tables or mesh buffers are internally inconsistent."""


class EngineContractError(SurfaceError, RuntimeError):
    """The surface engine produced something other than what was requested."""


class AssemblyMismatchError(EngineContractError):
    """The materialized structure is not the requested assembly."""

    def __init__(self, requested: str | None, produced: str | None):
        self.requested = requested
        self.produced = produced
        super().__init__(
            f"Wrong structure: requested assembly {requested!r}, "
            f"engine created assembly {produced!r}. "
            "Check that the assembly ID exists in this entry."
        )


class EmptyStructureWarning(UserWarning):
    """The chain selection matched no atoms; the resulting mesh is empty."""
