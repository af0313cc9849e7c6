"""Wimley-White whole-residue hydrophobicity scales (kcal/mol)."""

from __future__ import annotations

# DGwif: water -> membrane interface, DGwoct: water -> octanol,
# Oct-IF: difference between the two
SCALES = ("DGwif", "DGwoct", "Oct-IF")

RESIDUE_HYDROPHOBICITY: dict[str, tuple[float, float, float]] = {
    "ALA": (0.17, 0.50, 0.33),
    "ARG": (0.81, 1.81, 1.00),
    "ASN": (0.42, 0.85, 0.43),
    "ASP": (1.23, 3.64, 2.41),
    "ASH": (-0.07, 0.43, 0.50),
    "CYS": (-0.24, -0.02, 0.22),
    "GLN": (0.58, 0.77, 0.19),
    "GLU": (2.02, 3.63, 1.61),
    "GLH": (-0.01, 0.11, 0.12),
    "GLY": (0.01, 1.15, 1.14),
    "HIS": (0.17, 0.11, -0.06),
    "ILE": (-0.31, -1.12, -0.81),
    "LEU": (-0.56, -1.25, -0.69),
    "LYS": (0.99, 2.80, 1.81),
    "MET": (-0.23, -0.67, -0.44),
    "PHE": (-1.13, -1.71, -0.58),
    "PRO": (0.45, 0.14, -0.31),
    "SER": (0.13, 0.46, 0.33),
    "THR": (0.14, 0.25, 0.11),
    "TRP": (-1.85, -2.09, -0.24),
    "TYR": (-0.94, -0.71, 0.23),
    "VAL": (0.07, -0.46, -0.53),
}


def hydrophobicity(comp_id: str | None, scale: str = "DGwif") -> float | None:
    """Look up *comp_id* on *scale*; unknown residues give None."""
    values = RESIDUE_HYDROPHOBICITY.get(comp_id) if comp_id is not None else None
    if values is None:
        return None
    return values[SCALES.index(scale)]
