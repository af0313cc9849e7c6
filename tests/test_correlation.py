import numpy as np
import pytest

from protein_surface.errors import DataIntegrityError
from protein_surface.mesh.correlation import (
    check_mesh_count, extract, group_properties, surface_metadata, true_vertex_count,
    unit_offsets, vertex_properties,
)
from protein_surface.structure.assembly import build_structure
from protein_surface.structure.chains import select_chains
from protein_surface.structure.models import Unit
from protein_surface.surface.models import Mesh, Surface


def _unit(i: int, size: int) -> Unit:
    return Unit(i, i, "1", np.arange(size), np.zeros((size, 3)))


def _mesh(groups, vertex_count=None, n_positions=None) -> Mesh:
    n_positions = len(groups) if n_positions is None else n_positions
    return Mesh(
        positions=np.arange(3 * n_positions, dtype=np.float32),
        group_indices=np.asarray(groups),
        vertex_count=vertex_count,
    )


def test_unit_offsets_are_exclusive_prefix_sum() -> None:
    assert unit_offsets([_unit(0, 10), _unit(1, 5), _unit(2, 20)]) == [0, 10, 15]
    assert unit_offsets([]) == []


class TestTrueVertexCount:
    def test_declared_count_clamps_padded_buffer(self):
        mesh = _mesh(np.arange(80), vertex_count=50)
        assert true_vertex_count(mesh) == 50
        props = vertex_properties([mesh], [0])
        assert props.group_index == list(range(50))

    def test_no_declared_count_uses_whole_buffer(self):
        mesh = _mesh(np.arange(30))
        assert true_vertex_count(mesh) == 30
        assert len(vertex_properties([mesh], [0])) == 30

    def test_buffer_shorter_than_declared_count(self):
        assert true_vertex_count(_mesh(np.arange(10), vertex_count=12)) == 10

    def test_negative_declared_count(self):
        with pytest.raises(DataIntegrityError, match="Mesh 3"):
            true_vertex_count(_mesh([0], vertex_count=-1), 3)


class TestVertexProperties:
    def test_merged_mesh_over_two_units(self):
        """A merged mesh numbers groups over the whole structure, so offset 0 applies.

        Local indices [0, 1, 2, 0, 1, 2, 3] in a single merged mesh would all
        receive offset 0 and stay [0, 1, 2, 0, 1, 2, 3]; only per-unit meshes
        (next test) are shifted by the preceding unit sizes.
        """
        offsets = unit_offsets([_unit(0, 3), _unit(1, 4)])
        merged = _mesh([0, 1, 2, 3, 4, 5, 6, 0, 0], vertex_count=7)
        assert vertex_properties([merged], offsets).group_index == [0, 1, 2, 3, 4, 5, 6]

    def test_per_unit_meshes_are_offset(self):
        offsets = unit_offsets([_unit(0, 3), _unit(1, 4)])
        meshes = [_mesh([0, 1, 2]), _mesh([0, 1, 2, 3])]
        assert vertex_properties(meshes, offsets).group_index == [0, 1, 2, 3, 4, 5, 6]

    def test_positions_follow_kept_vertices(self):
        props = vertex_properties([_mesh([0, 0, 0, 0], vertex_count=2)], [0])
        assert props.x == [0.0, 3.0]
        assert props.y == [1.0, 4.0]
        assert props.z == [2.0, 5.0]

    def test_positions_can_be_omitted(self):
        props = vertex_properties([_mesh([0, 1])], [0], include_positions=False)
        assert props.x is None
        assert props.as_dict() == {"group_index": [0, 1]}

    def test_short_position_buffer(self):
        with pytest.raises(DataIntegrityError, match="expected at least 9"):
            vertex_properties([_mesh([0, 1, 2], n_positions=2)], [0])

    def test_more_meshes_than_units(self):
        with pytest.raises(DataIntegrityError):
            vertex_properties([_mesh([0]), _mesh([0])], [0])


def test_group_properties(tiny_model) -> None:
    structure = select_chains(build_structure(tiny_model), ["B", "C"])
    props = group_properties(tiny_model, structure.units)
    assert len(props) == 5
    assert props.atom_id == [4, 5, 6, 7, 8]
    assert props.label_atom_id == ["N", "CA", "C", "O", "S"]
    assert props.label_comp_id == ["GLY"] * 4 + ["SO4"]
    assert props.label_seq_id == [1, 1, 1, 1, None]
    assert props.label_asym_id == ["B"] * 4 + ["C"]
    assert props.auth_asym_id == ["B"] * 4 + ["A"]
    assert props.label_entity_id == ["1"] * 4 + ["2"]
    assert props.residue_hydrophobicity_DGwif == [0.01] * 4 + [None]


def test_group_properties_repeat_for_assembly_copies(tiny_model) -> None:
    structure = build_structure(tiny_model, "2")
    groups, vertices = extract(tiny_model, structure.units,
                               [_mesh([0, 2]), _mesh([1, 2])])
    assert groups.atom_id == [1, 2, 3, 1, 2, 3]
    assert groups.residue_hydrophobicity_DGwif == [0.17] * 6
    assert vertices.group_index == [0, 2, 4, 5]


class TestMeshCount:
    @pytest.mark.parametrize("n_meshes, n_units, granularity", [
        (2, 2, "chain"),
        (0, 0, "chain"),
        (1, 3, "structure"),
        (0, 3, "structure"),
        (1, 2, None),
    ])
    def test_accepted(self, n_meshes, n_units, granularity):
        check_mesh_count(n_meshes, n_units, granularity)

    @pytest.mark.parametrize("n_meshes, n_units, granularity", [
        (1, 2, "chain"),
        (3, 2, "chain"),
        (2, 2, "structure"),
        (3, 2, None),
    ])
    def test_rejected(self, n_meshes, n_units, granularity):
        with pytest.raises(DataIntegrityError, match=f"Got {n_meshes} meshes for {n_units} units"):
            check_mesh_count(n_meshes, n_units, granularity)

    def test_missing_chain_mesh_is_not_shifted_onto_other_chain(self, tiny_model):
        structure = select_chains(build_structure(tiny_model), ["A", "B"])
        only_b = _mesh([0, 1, 2, 3])
        with pytest.raises(DataIntegrityError, match="chain granularity"):
            surface_metadata(Surface(structure, [only_b], granularity="chain"))

    def test_chain_meshes_matching_units(self, tiny_model):
        structure = select_chains(build_structure(tiny_model), ["A", "B"])
        meshes = [_mesh([0, 1, 2]), _mesh([0, 1, 2, 3])]
        metadata = surface_metadata(Surface(structure, meshes, granularity="chain"))
        group_index = metadata["vertex_properties"]["group_index"]
        labels = [metadata["group_properties"]["label_asym_id"][g] for g in group_index]
        assert labels == ["A"] * 3 + ["B"] * 4
