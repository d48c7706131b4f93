from pathlib import Path

import pytest

from topflow.exceptions import ParsingError
from topflow.io.sources import NoInput
from topflow.topology.basic import TopFile


@pytest.fixture
def lipid_top(membrane_dir: Path) -> TopFile:
    """basic.top with the two-lipid ITP side-loaded."""
    return TopFile.read(membrane_dir / "basic.top", [membrane_dir / "lipids.itp"])


def test_manifest_before_sideload(membrane_dir: Path) -> None:
    top = TopFile.read(membrane_dir / "basic.top")
    assert [(m.type, m.count, m.block) for m in top.molecules] == [
        ("DPPC", 64, None),
        ("DIPC", 64, None),
        ("W", 1000, None),
    ]


def test_sideloaded_molecules(lipid_top: TopFile) -> None:
    dppc, dipc, water = lipid_top.molecule_list
    assert dppc is not None and dppc.type == "DPPC"
    assert dipc is not None and len(dipc.atoms) == 2
    assert water is None
    assert len(lipid_top.registered_itps) == 2


def test_sideload_from_string(lipid_top: TopFile) -> None:
    lipid_top.sideload_itp_from_string("[ moleculetype ]\nW 1\n[ atoms ]\n1 P4 1 W W 1 0\n")
    (water,) = lipid_top.get_molecule("W")
    assert water.block is not None
    assert water.block.atoms == ["1 P4 1 W W 1 0"]


def test_unlisted_molecule_is_not_registered(lipid_top: TopFile) -> None:
    lipid_top.sideload_itp_from_string("[ moleculetype ]\nCHOL 1\n")
    assert len(lipid_top.registered_itps) == 2


def test_layout_is_kept(lipid_top: TopFile) -> None:
    """No preprocessing: include lines stay where they were written and are not followed."""
    assert lipid_top.headlines == ["; Plain topology, read without preprocessing", '#include "martini_mini.itp"']
    assert lipid_top.included_files == ["martini_mini.itp"]
    assert not lipid_top.has_field("atomtypes")
    assert lipid_top.system == ["Lipid mix"]


def test_from_string() -> None:
    top = TopFile.from_string(
        "[ system ]\nIons\n[ molecules ]\n; name count\nNA 5\nCL 5\n",
        ["[ moleculetype ]\nNA 1\n#include \"na_params.itp\"\n"],
    )
    (na, cl) = top.molecules
    assert na.block is not None
    assert cl.block is None
    assert top.nested_includes == ['#include "na_params.itp"']


def test_read_without_input() -> None:
    with pytest.raises(ParsingError, match="topology input"):
        TopFile.read(NoInput())


def test_dispose(lipid_top: TopFile) -> None:
    block = lipid_top.registered_itps[0]
    lipid_top.dispose()
    assert lipid_top.data == {}
    assert block.data == {}
