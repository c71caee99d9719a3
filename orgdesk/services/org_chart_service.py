"""
Organizational chart layout.

Positions the company, its departments and (for expanded departments) their
units on a 2D canvas and returns graph nodes and edges ready for a
node-graph renderer.
"""

import math
from collections import defaultdict
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from orgdesk.models.company import Company
from orgdesk.models.department import Department, Unit
from orgdesk.models.user import User

COMPANY_NODE_ID = "company"

DEPARTMENT_SPACING = 320
DEPARTMENT_Y = 280
SUB_DEPARTMENT_SPACING = 260
SUB_DEPARTMENT_Y = 480

# Units stay inside their department's column and wrap into rows
DEPARTMENT_COLUMN_WIDTH = DEPARTMENT_SPACING
UNIT_MIN_HORIZONTAL_SPACING = 170
UNIT_ROW_VERTICAL_SPACING = 130
UNIT_VERTICAL_GAP = 220


def _position(x: float, y: float) -> dict:
    return {"x": x, "y": y}


def _edge(edge_id: str, source: str, target: str) -> dict:
    return {"id": edge_id, "source": source, "target": target}


def layout_units(parent_position: dict, units: list) -> list[tuple[dict, dict]]:
    """Return (unit, position) pairs for a department's units."""
    if not units:
        return []
    max_per_row = max(1, math.floor(DEPARTMENT_COLUMN_WIDTH / UNIT_MIN_HORIZONTAL_SPACING))
    rows = math.ceil(len(units) / max_per_row)

    placed = []
    for row in range(rows):
        row_units = units[row * max_per_row:(row + 1) * max_per_row]
        count = len(row_units)
        if count > 1:
            spacing = min(
                UNIT_MIN_HORIZONTAL_SPACING,
                math.floor(DEPARTMENT_COLUMN_WIDTH / (count - 1)),
            )
        else:
            spacing = UNIT_MIN_HORIZONTAL_SPACING
        row_start_x = parent_position["x"] - spacing * (count - 1) / 2
        row_y = parent_position["y"] + UNIT_VERTICAL_GAP + row * UNIT_ROW_VERTICAL_SPACING
        for index, unit in enumerate(row_units):
            placed.append((unit, _position(row_start_x + index * spacing, row_y)))
    return placed


def build_org_chart(
    company: dict,
    departments: list[dict],
    units: list[dict],
    expanded: Optional[Iterable[str]] = None,
) -> dict:
    """
    Lay out the org chart.

    `company` needs id/name/full_name/logo_url. Each department needs
    id/name/code/parent_department_id/manager_name, each unit
    id/department_id/name/staff_count/lead_name. Ids are compared as strings.
    `expanded` lists the department ids whose units are drawn.
    """
    nodes: list[dict] = []
    edges: list[dict] = []
    positions: dict[str, dict] = {}

    units_by_department: dict[str, list] = defaultdict(list)
    for unit in units:
        units_by_department[str(unit["department_id"])].append(unit)

    nodes.append({
        "id": COMPANY_NODE_ID,
        "type": "company",
        "position": _position(0, 0),
        "data": {
            "id": str(company["id"]),
            "label": company.get("name"),
            "full_name": company.get("full_name"),
            "logo_url": company.get("logo_url"),
        },
    })

    main_departments = [d for d in departments if not d.get("parent_department_id")]
    sub_departments = [d for d in departments if d.get("parent_department_id")]
    main_index = {str(d["id"]): i for i, d in enumerate(main_departments)}

    def department_data(dept: dict, has_subs: bool) -> dict:
        dept_id = str(dept["id"])
        return {
            "id": dept_id,
            "label": dept.get("name"),
            "code": dept.get("code"),
            "manager_name": dept.get("manager_name"),
            "unit_count": len(units_by_department.get(dept_id, [])),
            "has_sub_departments": has_subs,
        }

    start_x = -((len(main_departments) - 1) * DEPARTMENT_SPACING) / 2
    parents_with_subs = {str(d["parent_department_id"]) for d in sub_departments}

    for index, dept in enumerate(main_departments):
        dept_id = str(dept["id"])
        position = _position(start_x + index * DEPARTMENT_SPACING, DEPARTMENT_Y)
        positions[dept_id] = position
        nodes.append({
            "id": dept_id,
            "type": "department",
            "position": position,
            "data": department_data(dept, dept_id in parents_with_subs),
        })
        edges.append(_edge(f"{COMPANY_NODE_ID}-{dept_id}", COMPANY_NODE_ID, dept_id))

    siblings: dict[str, list[str]] = defaultdict(list)
    for dept in sub_departments:
        siblings[str(dept["parent_department_id"])].append(str(dept["id"]))

    for dept in sub_departments:
        dept_id = str(dept["id"])
        parent_id = str(dept["parent_department_id"])
        parent_index = main_index.get(parent_id)
        # Only one level of nesting is drawn
        if parent_index is None:
            continue
        group = siblings[parent_id]
        sibling_index = group.index(dept_id)
        sibling_start_x = -((len(group) - 1) * SUB_DEPARTMENT_SPACING) / 2
        x = (
            start_x
            + parent_index * DEPARTMENT_SPACING
            + sibling_start_x
            + sibling_index * SUB_DEPARTMENT_SPACING
        )
        position = _position(x, SUB_DEPARTMENT_Y)
        positions[dept_id] = position
        nodes.append({
            "id": dept_id,
            "type": "department",
            "position": position,
            "data": department_data(dept, False),
        })
        edges.append(_edge(f"{parent_id}-{dept_id}", parent_id, dept_id))

    # repeated ids draw once; node and edge ids must stay unique
    for dept_id in dict.fromkeys(str(d) for d in expanded or []):
        parent_position = positions.get(dept_id)
        if parent_position is None:
            continue
        for unit, position in layout_units(parent_position, units_by_department.get(dept_id, [])):
            unit_id = str(unit["id"])
            nodes.append({
                "id": f"unit-{dept_id}-{unit_id}",
                "type": "unit",
                "position": position,
                "data": {
                    "id": unit_id,
                    "label": unit.get("name"),
                    "staff_count": unit.get("staff_count") or 0,
                    "lead_name": unit.get("lead_name"),
                },
            })
            edges.append(_edge(f"edge-{dept_id}-{unit_id}", dept_id, f"unit-{dept_id}-{unit_id}"))

    return {"nodes": nodes, "edges": edges}


async def load_org_chart(
    db: AsyncSession,
    company: Company,
    expanded: Optional[list[str]] = None,
    expand_all: bool = False,
) -> dict:
    """Load the company's departments and units, then lay them out."""
    dept_rows = await db.execute(
        select(Department, User)
        .outerjoin(User, User.id == Department.manager_id)
        .where(Department.company_id == company.id, Department.deleted_at.is_(None))
        .order_by(Department.created_at)
    )
    departments = [
        {
            "id": dept.id,
            "name": dept.name,
            "code": dept.code,
            "parent_department_id": dept.parent_department_id,
            "manager_name": manager.full_name if manager else None,
        }
        for dept, manager in dept_rows.all()
    ]

    department_ids = [d["id"] for d in departments]
    units = []
    if department_ids:
        unit_rows = await db.execute(
            select(Unit, User)
            .outerjoin(User, User.id == Unit.lead_id)
            .where(Unit.department_id.in_(department_ids), Unit.deleted_at.is_(None))
            .order_by(Unit.created_at)
        )
        units = [
            {
                "id": unit.id,
                "department_id": unit.department_id,
                "name": unit.name,
                "staff_count": unit.staff_count,
                "lead_name": lead.full_name if lead else None,
            }
            for unit, lead in unit_rows.all()
        ]

    if expand_all:
        expanded = [str(d) for d in department_ids]

    return build_org_chart(
        {
            "id": company.id,
            "name": company.name,
            "full_name": company.full_name,
            "logo_url": company.logo_url,
        },
        departments,
        units,
        expanded,
    )
