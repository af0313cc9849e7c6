"""Top-level pipeline orchestration for protein_surface."""

from __future__ import annotations
from pathlib import Path
from typing import Iterable

from tqdm import tqdm

from protein_surface.io.dataset import StructureRef, filename_for
from protein_surface.surface.engine import SurfaceEngine
from protein_surface.surface.models import SurfaceOptions

DEFAULT_SOURCE = "https://www.ebi.ac.uk/pdbe/entry-files/download/{id}_updated.cif"


def process_reference(
    engine: SurfaceEngine,
    ref: StructureRef,
    output_dir: str | Path = ".",
    source: str = DEFAULT_SOURCE,
    options: SurfaceOptions | None = None,
    zip_output: bool = False,
    metadata: bool = False,
    molj: bool = False,
    verbose: bool = False,
) -> list[Path]:
    """Compute and write the surface of one structure reference.

    Parameters
    ----------
    engine:
        Surface engine; it is reset when this function returns or raises.
    ref:
        Structure reference (entry, optional assembly and author chain).
    output_dir:
        Directory for output files.
    source:
        URL template; ``{id}`` is replaced by the entry ID.
    options:
        Probe radius, quality and granularity.
    zip_output:
        Write ``{name}.zip`` instead of ``{name}.obj`` + ``{name}.mtl``.
    metadata:
        Also write ``{name}.metadata.json``.
    molj:
        Also write a ``{name}.molj`` engine state snapshot.
    verbose:
        Print progress messages.

    Returns the list of files written.
    """
    from protein_surface.mesh.correlation import surface_metadata
    from protein_surface.output.metadata import write_metadata
    from protein_surface.output.obj import save_geometry_files, save_geometry_zip
    from protein_surface.surface.compute import compute_surface, get_first_vertex

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    name = filename_for(ref)
    written: list[Path] = []
    try:
        surface = compute_surface(engine, ref.with_source(source), options, verbose=verbose)
        first_vertex = get_first_vertex(surface.meshes)

        if molj:
            written.append(engine.save_state_snapshot(output_dir / f"{name}.molj"))

        files = engine.export_geometry(name)
        if zip_output:
            written.append(save_geometry_zip(files, output_dir / f"{name}.zip",
                                             anchor=first_vertex, verbose=verbose))
        else:
            written.extend(save_geometry_files(files, output_dir / name,
                                               anchor=first_vertex, verbose=verbose))

        if metadata:
            written.append(write_metadata(surface_metadata(surface),
                                          output_dir / f"{name}.metadata.json",
                                          verbose=verbose))
    finally:
        engine.reset()
    return written


def run_dataset(
    refs: Iterable[StructureRef],
    output_dir: str | Path = ".",
    source: str = DEFAULT_SOURCE,
    options: SurfaceOptions | None = None,
    zip_output: bool = False,
    metadata: bool = False,
    molj: bool = False,
    verbose: bool = False,
    engine: SurfaceEngine | None = None,
) -> list[Path]:
    """Process every reference in order; the first failure aborts the run."""
    refs = list(refs)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    engine = engine or SurfaceEngine(verbose=verbose)
    options = options or SurfaceOptions()

    written: list[Path] = []
    for ref in tqdm(refs, desc="Computing surfaces", disable=not verbose):
        if verbose:
            print(f"Processing {filename_for(ref)}")
        written.extend(process_reference(
            engine, ref,
            output_dir=output_dir,
            source=source,
            options=options,
            zip_output=zip_output,
            metadata=metadata,
            molj=molj,
            verbose=verbose,
        ))
    if verbose:
        print("Done.")
    return written
