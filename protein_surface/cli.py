"""Click CLI entry point for protein_surface."""

from __future__ import annotations

import click

from protein_surface import __version__
from protein_surface.errors import InputError
from protein_surface.pipeline import DEFAULT_SOURCE
from protein_surface.surface.models import GRANULARITIES, QUALITY_LEVELS, SurfaceOptions

_REF_HELP = (
    "{entry_id}_{assembly_id}-{auth_chain_id}; omit _{assembly_id} to process "
    "the deposited model, omit -{auth_chain_id} to process all polymer chains."
)


@click.command()
@click.argument("refs", nargs=-1, metavar="[REF]...")
@click.option(
    "--input", "inputs", multiple=True, metavar="REF",
    help=f"Chain to process (repeatable). Each REF is {_REF_HELP} "
         "Example: --input 1e94 --input 1e94_3-E",
)
@click.option(
    "--input-file", type=click.Path(exists=True, dir_okay=False),
    help=f"File listing chains to process, one per line. Each line is {_REF_HELP}",
)
@click.option(
    "--output-dir", required=True, type=click.Path(file_okay=False),
    help="Directory for output files.",
)
@click.option(
    "--source", default=DEFAULT_SOURCE, show_default=True,
    envvar="PROTEIN_SURFACE_SOURCE",
    help="URL template for structure files; {id} is replaced by the entry ID. "
         "http://, https:// and file:// URLs of .cif or .bcif files are supported.",
)
@click.option(
    "--quality", default="high", show_default=True,
    type=click.Choice(QUALITY_LEVELS),
    help="Surface quality level.",
)
@click.option(
    "--probe", default=1.4, show_default=True, type=float,
    help="Probe radius in Å.",
)
@click.option(
    "--granularity", default="structure", show_default=True,
    type=click.Choice(GRANULARITIES),
    help="'structure' meshes the selection as a whole, 'chain' meshes each chain separately.",
)
@click.option("--zip", "zip_output", is_flag=True, default=False,
              help="Write {name}.zip instead of {name}.obj and {name}.mtl.")
@click.option("--metadata", is_flag=True, default=False,
              help="Also write {name}.metadata.json with per-vertex atom metadata.")
@click.option("--molj", is_flag=True, default=False,
              help="Also write {name}.molj with the engine state, for debugging.")
@click.option("--verbose", is_flag=True, help="Print progress messages.")
@click.version_option(__version__, prog_name="protein-surface")
def main(
    refs: tuple[str, ...],
    inputs: tuple[str, ...],
    input_file: str | None,
    output_dir: str,
    source: str,
    quality: str,
    probe: float,
    granularity: str,
    zip_output: bool,
    metadata: bool,
    molj: bool,
    verbose: bool,
) -> None:
    """Compute molecular surfaces of structures and export them as OBJ meshes.

    REFs given as arguments are added to those given with --input, so
    `--input 1e94 1e94_3-E` processes both. Give either REFs or --input-file.
    """
    from protein_surface.io.dataset import load_dataset, parse_reference
    from protein_surface.pipeline import run_dataset

    inputs = inputs + refs
    if bool(inputs) == bool(input_file):
        raise click.UsageError("Give REFs (with or without --input) or --input-file, not both.")

    try:
        refs = [parse_reference(r) for r in inputs] if inputs else load_dataset(input_file)
        options = SurfaceOptions(probe_radius=probe, quality=quality, granularity=granularity)
    except InputError as exc:
        raise click.BadParameter(str(exc)) from exc

    written = run_dataset(
        refs,
        output_dir=output_dir,
        source=source,
        options=options,
        zip_output=zip_output,
        metadata=metadata,
        molj=molj,
        verbose=verbose,
    )
    if verbose:
        click.echo(f"{len(refs)} structure(s) processed, {len(written)} file(s) written to {output_dir}")
