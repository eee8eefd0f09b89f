from __future__ import annotations

from itertools import combinations
from typing import Dict, List, Tuple

import networkx as nx
from pyvis.network import Network

from .models import AssignmentResult, Table

# ---------------------------
# Public API
# ---------------------------

CELL = 170
MARGIN = 100


def build_grid_graph(
    result: AssignmentResult,
    studio_names: Dict[str, str] | None = None,
) -> nx.Graph:
    """
    Graph of tables on the room grid.

    Nodes are tables placed at their row/col. An edge joins two tables that
    hold people from the same studio, labelled with the studio name.
    """
    names = studio_names or {}
    G = nx.Graph()

    for table in result.tables:
        x, y = _table_center(table)
        G.add_node(
            table.number,
            label=f"{table.number}",
            title=_node_tooltip(table, names),
            color=_fill_color(table),
            x=x,
            y=y,
            physics=False,
            shape="box",
        )

    by_number = {t.number: t for t in result.tables}
    for studio_id, numbers in result.fragmented.items():
        label = names.get(studio_id, studio_id)
        for a, b in combinations(numbers, 2):
            if a not in by_number or b not in by_number:
                continue
            if G.has_edge(a, b):
                G[a][b]["label"] += f", {label}"
                continue
            G.add_edge(a, b, label=label, color="#FFD700", width=2, smooth=True)
    return G


def generate_grid_map(
    result: AssignmentResult,
    studio_names: Dict[str, str] | None = None,
) -> str:
    """
    Build an interactive view of the seating grid.

    Parameters:
      result: solved seating.
      studio_names: optional studio id to display name mapping.

    Returns:
      HTML string with embedded network.
    """
    G = build_grid_graph(result, studio_names)
    net = Network(height="700px", width="100%", bgcolor="#111111", font_color="#EEEEEE")
    net.toggle_physics(False)  # positions are fixed
    net.from_nx(G)
    return _inject_legend_html(net.generate_html())

# ---------------------------
# Internals
# ---------------------------

def _table_center(table: Table) -> Tuple[int, int]:
    return MARGIN + table.col * CELL, MARGIN + table.row * CELL


def _fill_color(table: Table) -> str:
    ratio = table.size / table.capacity if table.capacity else 0
    if ratio >= 0.8:
        return "#77DD77"  # well filled: green
    if ratio >= 0.5:
        return "#FDFD96"  # half: yellow
    return "#FF6961"      # sparse: red


def _studio_lines(table: Table, names: Dict[str, str]) -> List[str]:
    lines = []
    for aid in table.affiliation_ids:
        count = sum(1 for p in table.people if p.studio_id == aid)
        lines.append(f"{names.get(aid, aid)}: {count}")
    return lines


def _node_tooltip(table: Table, names: Dict[str, str]) -> str:
    studios = "<br>".join(_studio_lines(table, names))
    return (
        f"<b>Table {table.number}</b><br>"
        f"Position: row {table.row}, col {table.col}<br>"
        f"Seated: {table.size}/{table.capacity}<br>"
        f"{studios}"
    )


def _inject_legend_html(page: str) -> str:
    css = """
    <style>
    .legend-box{
      position:absolute;right:12px;bottom:12px;
      background:#222;color:#eee;border:1px solid #444;border-radius:8px;
      padding:8px 12px;font-family:system-ui, -apple-system, Segoe UI, Roboto, Arial;font-size:12px;
      z-index:10;
    }
    .legend-swatch{display:inline-block;width:12px;height:12px;margin-right:6px;vertical-align:middle;border:1px solid #444;}
    </style>
    """
    html = f"""
    {css}
    <div class="legend-box">
      <div><span class="legend-swatch" style="background:#77DD77"></span>80% full or more</div>
      <div><span class="legend-swatch" style="background:#FDFD96"></span>half full</div>
      <div><span class="legend-swatch" style="background:#FF6961"></span>under half</div>
      <div style="margin-top:6px;"><span class="legend-swatch" style="background:#FFD700"></span>studio split across tables</div>
    </div>
    """
    if "</body>" in page:
        return page.replace("</body>", html + "</body>", 1)
    return page + html
