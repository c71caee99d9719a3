"""
Unit tests for orgdesk/services/org_chart_service.py

Layout rules:
  - company node at the origin
  - main departments centered on a row at y=280, 320 apart
  - sub-departments centered under their parent at y=480, 260 apart
  - units of expanded departments stacked below the department
"""

from orgdesk.services.org_chart_service import (
    COMPANY_NODE_ID,
    DEPARTMENT_SPACING,
    DEPARTMENT_Y,
    SUB_DEPARTMENT_SPACING,
    SUB_DEPARTMENT_Y,
    UNIT_ROW_VERTICAL_SPACING,
    UNIT_VERTICAL_GAP,
    build_org_chart,
    layout_units,
)

COMPANY = {"id": "c1", "name": "Acme", "full_name": "Acme Corp", "logo_url": None}


def _dept(dept_id, parent=None, name=None):
    return {
        "id": dept_id,
        "name": name or dept_id.upper(),
        "code": dept_id,
        "parent_department_id": parent,
        "manager_name": None,
    }


def _unit(unit_id, dept_id, staff=None):
    return {
        "id": unit_id,
        "department_id": dept_id,
        "name": unit_id,
        "staff_count": staff,
        "lead_name": None,
    }


def _nodes_by_id(chart):
    return {node["id"]: node for node in chart["nodes"]}


# ---------------------------------------------------------------------------
# Departments
# ---------------------------------------------------------------------------


def test_company_only_chart():
    chart = build_org_chart(COMPANY, [], [])

    assert chart["edges"] == []
    assert len(chart["nodes"]) == 1
    node = chart["nodes"][0]
    assert node["id"] == COMPANY_NODE_ID
    assert node["type"] == "company"
    assert node["position"] == {"x": 0, "y": 0}
    assert node["data"]["label"] == "Acme"
    assert node["data"]["full_name"] == "Acme Corp"


def test_main_departments_are_centered():
    chart = build_org_chart(COMPANY, [_dept("a"), _dept("b"), _dept("c")], [])
    nodes = _nodes_by_id(chart)

    assert nodes["a"]["position"] == {"x": -DEPARTMENT_SPACING, "y": DEPARTMENT_Y}
    assert nodes["b"]["position"] == {"x": 0, "y": DEPARTMENT_Y}
    assert nodes["c"]["position"] == {"x": DEPARTMENT_SPACING, "y": DEPARTMENT_Y}
    assert [e["id"] for e in chart["edges"]] == ["company-a", "company-b", "company-c"]
    assert all(e["source"] == COMPANY_NODE_ID for e in chart["edges"])


def test_sub_departments_centered_under_parent():
    departments = [_dept("a"), _dept("b"), _dept("b1", "b"), _dept("b2", "b")]
    chart = build_org_chart(COMPANY, departments, [])
    nodes = _nodes_by_id(chart)

    parent_x = nodes["b"]["position"]["x"]
    assert parent_x == DEPARTMENT_SPACING / 2
    assert nodes["b1"]["position"] == {
        "x": parent_x - SUB_DEPARTMENT_SPACING / 2,
        "y": SUB_DEPARTMENT_Y,
    }
    assert nodes["b2"]["position"] == {
        "x": parent_x + SUB_DEPARTMENT_SPACING / 2,
        "y": SUB_DEPARTMENT_Y,
    }
    assert nodes["b"]["data"]["has_sub_departments"] is True
    assert nodes["a"]["data"]["has_sub_departments"] is False

    edges = {e["id"]: e for e in chart["edges"]}
    assert edges["b-b1"] == {"id": "b-b1", "source": "b", "target": "b1"}


def test_grandchild_departments_are_not_drawn():
    departments = [_dept("a"), _dept("a1", "a"), _dept("a1x", "a1")]
    chart = build_org_chart(COMPANY, departments, [])

    assert "a1x" not in _nodes_by_id(chart)


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------


def test_units_hidden_unless_expanded():
    chart = build_org_chart(COMPANY, [_dept("a")], [_unit("u1", "a")])
    nodes = _nodes_by_id(chart)

    assert "unit-a-u1" not in nodes
    assert nodes["a"]["data"]["unit_count"] == 1


def test_expanded_department_draws_units():
    units = [_unit("u1", "a", staff=4), _unit("u2", "a")]
    chart = build_org_chart(COMPANY, [_dept("a")], units, expanded=["a"])
    nodes = _nodes_by_id(chart)

    first = nodes["unit-a-u1"]
    assert first["type"] == "unit"
    assert first["data"]["staff_count"] == 4
    assert nodes["unit-a-u2"]["data"]["staff_count"] == 0

    edges = {e["id"]: e for e in chart["edges"]}
    assert edges["edge-a-u1"]["source"] == "a"
    assert edges["edge-a-u1"]["target"] == "unit-a-u1"


def test_repeated_expanded_id_draws_units_once():
    units = [_unit("u1", "a"), _unit("u2", "a")]
    chart = build_org_chart(COMPANY, [_dept("a")], units, expanded=["a", "a"])

    node_ids = [n["id"] for n in chart["nodes"]]
    edge_ids = [e["id"] for e in chart["edges"]]
    assert node_ids.count("unit-a-u1") == 1
    assert len(node_ids) == len(set(node_ids)) == 4
    assert len(edge_ids) == len(set(edge_ids))


def test_expanding_unknown_department_is_ignored():
    chart = build_org_chart(COMPANY, [_dept("a")], [_unit("u1", "a")], expanded=["zzz"])

    assert len(chart["nodes"]) == 2


def test_layout_units_wraps_rows_inside_column():
    parent = {"x": 100, "y": DEPARTMENT_Y}
    placed = layout_units(parent, ["u1", "u2", "u3"])

    # a 320 wide column fits one 170 wide unit per row
    assert [unit for unit, _ in placed] == ["u1", "u2", "u3"]
    for row, (_, position) in enumerate(placed):
        assert position["x"] == 100
        assert position["y"] == DEPARTMENT_Y + UNIT_VERTICAL_GAP + row * UNIT_ROW_VERTICAL_SPACING


def test_layout_units_empty():
    assert layout_units({"x": 0, "y": 0}, []) == []
