from __future__ import annotations

from pathlib import Path
from threading import Lock
from typing import Iterable, List, Optional

from openpyxl import Workbook, load_workbook

from core.exceptions import ExportError
from intake.models import CutPart, ParseResult

PARTS_SHEET = "Parts"
ERRORS_SHEET = "Errors"

PARTS_HEADER = [
    "Part ID", "Label", "Qty", "L (mm)", "W (mm)", "Thickness (mm)", "Material", "Grain",
    "Rotation", "Edging", "Grooves", "Holes", "CNC", "Source", "Source Ref", "Confidence", "Verified",
]
ERRORS_HEADER = ["Index", "Message", "Source Text"]


def part_row(part: CutPart) -> list:
    """Flatten a part into one worksheet row."""
    ops = part.ops
    edging = ",".join(ops.edging.edges) if ops and ops.edging else ""
    grooves = "; ".join(f"{g.side} {g.width_mm:g}x{g.depth_mm:g}" for g in ops.grooves) if ops else ""
    holes = "; ".join(f"{h.pattern} ({h.face})" for h in ops.holes) if ops else ""
    cnc = "; ".join(c.program for c in ops.cnc) if ops else ""
    return [
        part.part_id,
        part.label or "",
        part.qty,
        float(part.size.L),
        float(part.size.W),
        float(part.thickness_mm),
        part.material_id,
        part.grain,
        "yes" if part.allow_rotation else "no",
        edging,
        grooves,
        holes,
        cnc,
        part.audit.source_method,
        part.audit.source_ref or "",
        float(part.audit.confidence),
        "yes" if part.audit.human_verified else "no",
    ]


class PartsExcelExporter:
    """Writes parsed parts and per-line errors to a review workbook.

    The workbook is the shared destination when several workers export,
    so every read-modify-save cycle runs under one lock.
    """

    def __init__(self, file_path: Optional[str] = None) -> None:
        default_path = Path("exports") / "cutlist_review.xlsx"
        self.file_path = Path(file_path).absolute() if file_path else default_path.absolute()
        self.lock = Lock()

    def _create_new_workbook(self) -> Workbook:
        wb = Workbook()
        ws = wb.active
        ws.title = PARTS_SHEET
        ws.append(PARTS_HEADER)
        errors = wb.create_sheet(ERRORS_SHEET)
        errors.append(ERRORS_HEADER)
        return wb

    def _open_workbook(self) -> Workbook:
        if not self.file_path.exists():
            return self._create_new_workbook()
        wb = load_workbook(self.file_path)
        if PARTS_SHEET not in wb.sheetnames:
            wb.create_sheet(PARTS_SHEET, 0).append(PARTS_HEADER)
        if ERRORS_SHEET not in wb.sheetnames:
            wb.create_sheet(ERRORS_SHEET).append(ERRORS_HEADER)
        return wb

    def _save(self, wb: Workbook) -> None:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(self.file_path)

    def append_parts(self, parts: Iterable[CutPart]) -> int:
        """Append parts to the workbook, creating it if needed.

        Returns:
            Number of rows appended

        Raises:
            ExportError: If the workbook cannot be read or written
        """
        try:
            with self.lock:
                wb = self._open_workbook()
                ws = wb[PARTS_SHEET]
                count = 0
                for part in parts:
                    ws.append(part_row(part))
                    count += 1
                self._save(wb)
                return count
        except Exception as e:
            raise ExportError(f"Failed to append parts: {e}") from e

    def write_results(self, results: Iterable[ParseResult]) -> int:
        """Rewrite the workbook with one Parts row per part and one Errors row per error.

        Returns:
            Number of part rows written

        Raises:
            ExportError: If the workbook cannot be written
        """
        try:
            with self.lock:
                wb = self._create_new_workbook()
                parts_ws, errors_ws = wb[PARTS_SHEET], wb[ERRORS_SHEET]
                count = 0
                for result in results:
                    if result.part is not None:
                        parts_ws.append(part_row(result.part))
                        count += 1
                    for error in result.errors:
                        errors_ws.append([error.index, error.message, result.source_text])
                self._save(wb)
                return count
        except Exception as e:
            raise ExportError(f"Failed to write results: {e}") from e

    def read_part_ids(self) -> List[str]:
        """Part IDs currently in the Parts sheet."""
        if not self.file_path.exists():
            return []
        try:
            with self.lock:
                wb = load_workbook(self.file_path, read_only=True)
                ws = wb[PARTS_SHEET]
                ids = [row[0] for row in ws.iter_rows(min_row=2, values_only=True) if row and row[0]]
                wb.close()
                return ids
        except Exception as e:
            raise ExportError(f"Failed to read workbook: {e}") from e
