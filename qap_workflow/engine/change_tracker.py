"""Change Tracker - field-level diffs between two revisions of a QAP's specifications"""
from typing import Any, Dict, List, Optional

from ..domain.models import QAPSpecs, SpecRow, SpecChange, EditedSnos
from ..domain.enums import SpecCategory

ROW_FIELD = "row"


def _index_rows(rows: List[SpecRow]) -> Dict[int, Dict[str, Any]]:
    return {row.sno: row.model_dump(exclude={"sno"}) for row in rows}


def diff_rows(category: SpecCategory, before: List[SpecRow], after: List[SpecRow]) -> List[SpecChange]:
    """
    Diff one section by serial number.

    Added and removed rows are reported once with field "row"; rows present
    on both sides yield one change per differing field.
    """
    old = _index_rows(before)
    new = _index_rows(after)
    changes: List[SpecChange] = []

    for sno in sorted(set(old) | set(new)):
        if sno not in old:
            changes.append(SpecChange(category=category, sno=sno, field=ROW_FIELD, before=None, after=new[sno]))
            continue
        if sno not in new:
            changes.append(SpecChange(category=category, sno=sno, field=ROW_FIELD, before=old[sno], after=None))
            continue
        for field in old[sno]:
            if old[sno][field] != new[sno].get(field):
                changes.append(SpecChange(
                    category=category,
                    sno=sno,
                    field=field,
                    before=old[sno][field],
                    after=new[sno].get(field)
                ))
    return changes


def diff_specs(before: QAPSpecs, after: QAPSpecs) -> List[SpecChange]:
    """Field-level changes across both sections"""
    return [
        *diff_rows(SpecCategory.MQP, before.mqp, after.mqp),
        *diff_rows(SpecCategory.VISUAL, before.visual, after.visual),
    ]


def compute_edited_snos(before: QAPSpecs, after: QAPSpecs) -> EditedSnos:
    """Sorted serial numbers that changed, per section"""
    edited: Dict[str, set] = {SpecCategory.MQP.value: set(), SpecCategory.VISUAL.value: set()}
    for change in diff_specs(before, after):
        edited[change.category.value].add(change.sno)
    return EditedSnos(
        mqp=sorted(edited[SpecCategory.MQP.value]),
        visual=sorted(edited[SpecCategory.VISUAL.value])
    )


def is_edited(category: SpecCategory, sno: Any, edited: Optional[EditedSnos]) -> bool:
    """Whether a row was changed by the last edit"""
    if edited is None:
        return False
    try:
        number = int(sno)
    except (TypeError, ValueError):
        return False
    snos = edited.mqp if SpecCategory(category) == SpecCategory.MQP else edited.visual
    return number in snos
