"""protein_surface: Molecular-surface meshes with per-vertex atom metadata."""

__version__ = "0.1.0"

from protein_surface.io.dataset import StructureRef, parse_reference, parse_dataset, filename_for
from protein_surface.pipeline import process_reference, run_dataset
from protein_surface.surface.models import SurfaceOptions

__all__ = [
    "StructureRef", "parse_reference", "parse_dataset", "filename_for",
    "process_reference", "run_dataset", "SurfaceOptions",
]
