"""Tab-separated table of TTC results per estimation run."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from ..ttc.result import TTCResult

if TYPE_CHECKING:
    from ..pipeline import TTCRun

NOT_COMPUTABLE = "n/a"


def format_ttc(result: TTCResult, precision: int = 3) -> str:
    """Format a result as seconds, or `n/a` when not computable."""
    if not result.is_computable:
        return NOT_COMPUTABLE
    return f"{result.seconds:.{precision}f}"


def write_results(path: str | Path, runs: Iterable[TTCRun], precision: int = 3) -> Path:
    """Write one `range` and one `vision` row per run.

    Format:
        #run<TAB>source<TAB>ttc
        FAST-BRIEF<TAB>range<TAB>12.516<TAB>n/a...
        FAST-BRIEF<TAB>vision<TAB>11.903<TAB>13.220...

    Args:
        path: Output file; parent directories are created
        runs: Runs to write, in order
        precision: Decimal places for seconds

    Returns:
        The path written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        f.write("#run\tsource\tttc\n")
        for run in runs:
            for source, results in (("range", run.range_ttcs), ("vision", run.vision_ttcs)):
                values = [format_ttc(r, precision) for r in results]
                f.write("\t".join([run.label, source, *values]) + "\n")

    return path


def read_results(path: str | Path) -> dict[str, dict[str, list[float | None]]]:
    """Read a table written by `write_results`.

    Returns:
        Mapping run label -> source ("range"/"vision") -> seconds, with None
        for values that were not computable
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Results file not found: {path}")

    table: dict[str, dict[str, list[float | None]]] = {}
    with open(path, "r") as f:
        for line in f:
            line = line.rstrip("\n")
            if not line or line.startswith("#"):
                continue

            parts = line.split("\t")
            if len(parts) < 2:
                raise ValueError(f"Invalid line in {path}: '{line}'")

            label, source = parts[0], parts[1]
            values = [None if v == NOT_COMPUTABLE else float(v) for v in parts[2:]]
            table.setdefault(label, {})[source] = values

    return table
