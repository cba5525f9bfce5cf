"""
Helpers to write Tanita GRAPHV1 export files for tests.
"""
from pathlib import Path


PROFILE_LINE = 'DB,"01/05/1990",GE,1,Hm,172.0,AL,2,Bt,0,CS,ABC123'

MEASUREMENT_LINES = [
    'DT,"10/06/2024",Ti,"08:30:00",Wk,80.2,MI,27.1,FW,"25,4",ww,52.0,IF,9,rA,38,rD,2100',
    'DT,"11/06/2024",Ti,"08:31:00",Wk,"79,8",MI,27.0,FW,25.1,Fr,22.5,FR,24.5,mT,30.1',
]


def write_slot(graph_root: Path, slot: int, profile: str | None, measurements: list[str] | None):
    """Write PROFn.CSV / DATAn.CSV for one slot; None leaves the file out."""
    system = graph_root / 'SYSTEM'
    data = graph_root / 'DATA'
    system.mkdir(parents=True, exist_ok=True)
    data.mkdir(parents=True, exist_ok=True)

    if profile is not None:
        (system / f'PROF{slot}.CSV').write_text(profile + '\n', encoding='utf-8')
    if measurements is not None:
        (data / f'DATA{slot}.CSV').write_text('\n'.join(measurements) + '\n', encoding='utf-8')
