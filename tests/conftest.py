"""Test configuration and fixtures for chiralayout tests."""

import pytest

from chiralayout import DrawerOptions


@pytest.fixture
def options() -> DrawerOptions:
    """Default drawer options."""
    return DrawerOptions()


@pytest.fixture
def chain_smiles() -> list[str]:
    """Acyclic molecules."""
    return [
        "C",
        "CC",
        "CCO",
        "CCCCCC",
        "CC(C)C",
        "CC(C)(C)C",
        "CC(C)(C)C(C)(C)C",
        "C=C",
        "CC#N",
        "C=C=C",
        "CC(=O)O",
        "CCCCCCCCCCCCCCCCCCCC",
    ]


@pytest.fixture
def ring_smiles() -> list[str]:
    """Single rings and simple ring systems."""
    return [
        "C1CC1",
        "C1CCC1",
        "C1CCCC1",
        "C1CCCCC1",
        "c1ccccc1",
        "C1CCCCCCC1",
        "Cc1ccccc1",
        "c1ccccc1O",
    ]


@pytest.fixture
def fused_smiles() -> list[str]:
    """Fused ring systems."""
    return [
        "c1ccc2ccccc2c1",
        "c1ccc2cc3ccccc3cc2c1",
        "C1CCC2CCCCC2C1",
        "c1ccc2[nH]ccc2c1",
    ]


@pytest.fixture
def spiro_smiles() -> list[str]:
    """Spiro ring systems."""
    return [
        "C1CCC12CCC2",
        "C1CCCC12CCCC2",
        "C1CCC2(CC1)CCCC2",
    ]


@pytest.fixture
def bridged_smiles() -> list[str]:
    """Bridged ring systems."""
    return [
        # Norbornane
        "C1CC2CCC1C2",
        # Bicyclo[2.2.2]octane
        "C1CC2CCC1CC2",
        # Adamantane
        "C1C2CC3CC1CC(C2)C3",
    ]


@pytest.fixture
def complex_smiles() -> list[str]:
    """Complex real-world molecules."""
    return [
        # Aspirin
        "CC(=O)OC1=CC=CC=C1C(=O)O",
        # Caffeine
        "CN1C=NC2=C1C(=O)N(C(=O)N2C)C",
        # Ibuprofen
        "CC(C)Cc1ccc(cc1)C(C)C(=O)O",
        # Acetaminophen
        "CC(=O)Nc1ccc(O)cc1",
        # Biphenyl
        "c1ccc(-c2ccccc2)cc1",
        # Camphor
        "CC1(C)C2CCC1(C)C(=O)C2",
        # Salt
        "[Na+].[Cl-]",
    ]
