"""
Grouping - Color-tagged node groups and the floating group toolbar.

This module provides:
- GroupManager: group/ungroup/recolor plus group-vs-single selection rules
- ToolbarPlacement: where the floating toolbar goes and what it offers

The manager is strict: bad ids and off-palette colors raise CanvasError
subclasses. The session turns those into no-ops for the UI.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from gen_canvas.core.drag_state import ResizeDirection
from gen_canvas.core.errors import InvalidColor, InvalidTransition
from gen_canvas.core.geometry import CanvasTransform, Point2D, Rect, bounding_rect
from gen_canvas.core.graph import Group, GroupId, NodeGraph, NodeId
from gen_canvas.core.selection import Selection
from gen_canvas.core.settings import CanvasSettings, GroupColorPolicy


logger = logging.getLogger(__name__)


class ToolbarAction(Enum):
    """The single affordance the group toolbar offers."""
    GROUP = "group"
    UNGROUP = "ungroup"


@dataclass(frozen=True)
class ToolbarPlacement:
    """Screen-space anchor of the floating toolbar (horizontally centered on x)."""
    x: float
    y: float
    action: ToolbarAction
    group_id: GroupId | None = None


class GroupManager:
    """Creates, dissolves and recolors groups; answers selection questions."""

    def __init__(self, graph: NodeGraph, selection: Selection, settings: CanvasSettings):
        self._graph = graph
        self._selection = selection
        self._settings = settings
        self._created = 0

    # --- Palette ---

    @property
    def palette(self) -> tuple[str, ...]:
        return self._settings.group_palette

    def next_color(self) -> str:
        """Color the next new group will get."""
        if self._settings.group_color_policy is GroupColorPolicy.FIRST:
            return self.palette[0]
        return self.palette[self._created % len(self.palette)]

    def normalize_color(self, color: str) -> str:
        """
        Return the palette spelling of ``color``.

        Raises:
            InvalidColor: If the color is not a palette entry.
        """
        for entry in self.palette:
            if entry.lower() == color.strip().lower():
                return entry
        raise InvalidColor(f"Color not in group palette: {color!r}")

    # --- Mutations ---

    def group(self, node_ids: Iterable[NodeId]) -> Group:
        """
        Group the given nodes.

        Raises:
            InvalidTransition: If fewer than two of the ids are live nodes.
        """
        members = [nid for nid in dict.fromkeys(node_ids) if nid in self._graph]
        if len(members) < 2:
            raise InvalidTransition("Grouping needs at least two nodes")

        bounds = self._graph.nodes_bounds(members)
        group = Group.create(
            members,
            color=self.next_color(),
            bounds=bounds.inflated(self._settings.group_padding),
        )
        self._graph.add_group(group)
        self._created += 1
        logger.info("Grouped %d nodes as %s (%s)", len(members), group.id, group.color)
        return group

    def ungroup(self, group_id: GroupId) -> Group:
        """
        Dissolve a group; its members stay where they are.

        Raises:
            InvalidReference: If the group does not exist.
        """
        group = self._graph.require_group(group_id)
        self._graph.remove_group(group_id)
        logger.info("Ungrouped %s", group_id)
        return group

    def set_group_color(self, group_id: GroupId, color: str) -> Group:
        """
        Recolor a group without touching its membership.

        Raises:
            InvalidReference: If the group does not exist.
            InvalidColor: If the color is not in the palette.
        """
        group = self._graph.require_group(group_id)
        group.color = self.normalize_color(color)
        return group

    def resize(
        self,
        group_id: GroupId,
        start: Rect,
        direction: ResizeDirection,
        dx: float,
        dy: float,
    ) -> Rect:
        """
        Resize a group frame from its gesture-start bounds by a world delta.

        Sizes never go below ``group_min_size``. Dragging the west edge
        keeps the east edge fixed.
        """
        group = self._graph.require_group(group_id)
        min_size = self._settings.group_min_size
        x, width, height = start.x, start.width, start.height

        if direction is ResizeDirection.SOUTH_EAST:
            width = max(min_size, start.width + dx)
            height = max(min_size, start.height + dy)
        elif direction is ResizeDirection.EAST:
            width = max(min_size, start.width + dx)
        elif direction is ResizeDirection.WEST:
            width = max(min_size, start.width - dx)
            x = start.x + (start.width - width)

        group.bounds = Rect(x, start.y, width, height)
        return group.bounds

    # --- Selection semantics ---

    def selected_group(self) -> Group | None:
        """The group whose membership is exactly the current selection."""
        selected = self._selection.node_ids
        if len(selected) < 2:
            return None
        group = self._graph.group_of(next(iter(selected)))
        if group is not None and group.member_ids == selected:
            return group
        return None

    def affordance(self) -> ToolbarAction | None:
        """UNGROUP for exactly one group, GROUP for any other multi-selection."""
        if self.selected_group() is not None:
            return ToolbarAction.UNGROUP
        if len(self._selection) > 1:
            return ToolbarAction.GROUP
        return None

    def expand_to_groups(self, node_ids: Iterable[NodeId]) -> set[NodeId]:
        """The given nodes plus every member of any group they belong to."""
        result: set[NodeId] = set()
        for nid in node_ids:
            result.add(nid)
            group = self._graph.group_of(nid)
            if group is not None:
                result.update(group.member_ids)
        return result

    def groups_of(self, node_ids: Iterable[NodeId]) -> list[Group]:
        seen: dict[GroupId, Group] = {}
        for nid in node_ids:
            group = self._graph.group_of(nid)
            if group is not None:
                seen[group.id] = group
        return list(seen.values())

    def selection_bounds(self) -> Rect | None:
        """World bounds of the selected nodes plus frames of wholly selected groups."""
        selected = self._selection.node_ids
        rects = [self._graph.get_node(nid).bounds for nid in selected if nid in self._graph]
        for group in self.groups_of(selected):
            if group.member_ids <= selected:
                rects.append(group.bounds)
        return bounding_rect(rects)

    def toolbar_placement(self, transform: CanvasTransform) -> ToolbarPlacement | None:
        """
        Where the floating toolbar goes for the current selection.

        Centered horizontally on the selection bounds, ``toolbar_margin_px``
        screen pixels above their top edge. None when no affordance applies.
        """
        action = self.affordance()
        if action is None:
            return None
        bounds = self.selection_bounds()
        if bounds is None:
            return None
        anchor = transform.world_to_screen(Point2D(bounds.center.x, bounds.top))
        group = self.selected_group()
        return ToolbarPlacement(
            x=anchor.x,
            y=anchor.y - self._settings.toolbar_margin_px,
            action=action,
            group_id=group.id if group else None,
        )

    def reset(self) -> None:
        """Restart the color rotation (used when the canvas is cleared)."""
        self._created = 0
