"""
Shared fixtures: Tanita GRAPHV1 export folders on disk.
"""
import pytest

from .tanita_files import MEASUREMENT_LINES, PROFILE_LINE, write_slot


@pytest.fixture
def tanita_root(tmp_path):
    """
    Card root with TANITA/GRAPHV1 and a single populated slot (slot 1).
    """
    root = tmp_path / 'card'
    write_slot(root / 'TANITA' / 'GRAPHV1', 1, PROFILE_LINE, MEASUREMENT_LINES)
    return root


@pytest.fixture
def graph_root(tanita_root):
    return tanita_root / 'TANITA' / 'GRAPHV1'
