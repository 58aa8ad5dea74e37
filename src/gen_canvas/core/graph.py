"""
Canvas Graph Model - Nodes, connections and groups.

This module defines the authoritative store behind the canvas:
- Node: A generation node with world-space position and size
- Connection: A directed edge from one node's output to another's input
- Group: A color-tagged set of nodes with a frame drawn behind them
- NodeGraph: The store, with incrementally maintained derived indexes

Connections and groups refer to nodes by id only. The graph keeps two
derived indexes (node -> incident connections, node -> owning group) so
lookups never need a back-pointer inside Node.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, NewType
from uuid import uuid4

from gen_canvas.core.errors import InvalidReference
from gen_canvas.core.geometry import Point2D, Rect, bounding_rect
from gen_canvas.core.node_types import NodeKind, kind_spec


logger = logging.getLogger(__name__)


# Type aliases for clarity
NodeId = NewType("NodeId", str)
ConnectionId = NewType("ConnectionId", str)
GroupId = NewType("GroupId", str)


def new_node_id() -> NodeId:
    """Generate a new unique node ID."""
    return NodeId(uuid4().hex)


def new_connection_id() -> ConnectionId:
    """Generate a new unique connection ID."""
    return ConnectionId(uuid4().hex)


def new_group_id() -> GroupId:
    """Generate a new unique group ID."""
    return GroupId(uuid4().hex)


@dataclass
class Node:
    """
    A single node on the canvas.

    Position and size are in world space. The id is never reused once the
    node is removed from a graph.
    """
    id: NodeId
    kind: NodeKind
    x: float = 0.0
    y: float = 0.0
    width: float = 320.0
    height: float = 240.0
    title: str = ""

    @classmethod
    def create(cls, kind: NodeKind, position: Point2D | None = None) -> Node:
        """Factory method using the kind's default size and title."""
        spec = kind_spec(kind)
        position = position or Point2D()
        return cls(
            id=new_node_id(),
            kind=kind,
            x=position.x,
            y=position.y,
            width=spec.default_size.width,
            height=spec.default_size.height,
            title=spec.title,
        )

    @property
    def bounds(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

    @property
    def output_anchor(self) -> Point2D:
        """Right-edge midpoint, where outgoing connections start."""
        return Point2D(self.x + self.width, self.y + self.height / 2)

    @property
    def input_anchor(self) -> Point2D:
        """Left-edge midpoint, where incoming connections end."""
        return Point2D(self.x, self.y + self.height / 2)

    @property
    def accepts_input(self) -> bool:
        return kind_spec(self.kind).accepts_input


@dataclass(frozen=True)
class Connection:
    """
    A connection (wire) between two nodes.

    Direction is fixed: ``source_id`` is the node whose right-edge output
    is used, ``target_id`` the node whose left-edge input is used.
    """
    id: ConnectionId
    source_id: NodeId
    target_id: NodeId

    @classmethod
    def create(cls, source_id: NodeId, target_id: NodeId) -> Connection:
        """Factory method to create a new connection."""
        return cls(id=new_connection_id(), source_id=source_id, target_id=target_id)

    def touches(self, node_id: NodeId) -> bool:
        return self.source_id == node_id or self.target_id == node_id


@dataclass
class Group:
    """
    A visual grouping of nodes.

    ``bounds`` is the frame drawn behind the members; it starts as the
    padded bounding box of the members and can be resized independently.
    Membership is only changed through ``NodeGraph``.
    """
    id: GroupId
    member_ids: frozenset[NodeId]
    color: str
    bounds: Rect
    title: str = "Group"

    @classmethod
    def create(cls, member_ids: Iterable[NodeId], color: str, bounds: Rect) -> Group:
        """Factory method to create a new group."""
        return cls(id=new_group_id(), member_ids=frozenset(member_ids), color=color, bounds=bounds)


class NodeGraph:
    """
    The node/connection/group store for one canvas.

    Node insertion order doubles as z-order: later nodes are drawn on top
    and win hit-tests.
    """

    def __init__(self):
        self._nodes: dict[NodeId, Node] = {}
        self._connections: dict[ConnectionId, Connection] = {}
        self._groups: dict[GroupId, Group] = {}
        self._incident: dict[NodeId, set[ConnectionId]] = {}
        self._group_of: dict[NodeId, GroupId] = {}
        self._retired_ids: set[NodeId] = set()

    # --- Node operations ---

    @property
    def nodes(self) -> dict[NodeId, Node]:
        """Get all nodes (read-only view)."""
        return self._nodes.copy()

    def add_node(self, node: Node) -> None:
        """
        Add a node to the graph.

        Raises:
            ValueError: If the id is in use or belonged to a removed node.
        """
        if node.id in self._nodes or node.id in self._retired_ids:
            raise ValueError(f"Node id already used: {node.id}")
        self._nodes[node.id] = node
        logger.debug("Added node %s (%s)", node.id, node.kind.value)

    def remove_node(self, node_id: NodeId) -> Node | None:
        """
        Remove a node, its connections, and its group membership.

        Returns the removed node, or None if not found.
        """
        node = self._nodes.pop(node_id, None)
        if node is None:
            return None

        self._retired_ids.add(node_id)
        for conn_id in list(self._incident.get(node_id, ())):
            self.remove_connection(conn_id)
        self._incident.pop(node_id, None)
        self._leave_group(node_id)
        logger.debug("Removed node %s", node_id)
        return node

    def get_node(self, node_id: NodeId) -> Node | None:
        """Get a node by ID."""
        return self._nodes.get(node_id)

    def require_node(self, node_id: NodeId) -> Node:
        """Get a node by ID or raise InvalidReference."""
        node = self._nodes.get(node_id)
        if node is None:
            raise InvalidReference("node", node_id)
        return node

    def iter_nodes_topmost_first(self) -> Iterator[Node]:
        return reversed(list(self._nodes.values()))

    def bring_to_front(self, node_ids: Iterable[NodeId]) -> None:
        """Move nodes to the top of the z-order, keeping their relative order."""
        wanted = set(node_ids)
        moving = [n for n in self._nodes.values() if n.id in wanted]
        for node in moving:
            del self._nodes[node.id]
        for node in moving:
            self._nodes[node.id] = node

    def nodes_bounds(self, node_ids: Iterable[NodeId] | None = None) -> Rect | None:
        """Bounding box of the given nodes (all nodes when None)."""
        if node_ids is None:
            return bounding_rect(n.bounds for n in self._nodes.values())
        return bounding_rect(
            self._nodes[nid].bounds for nid in node_ids if nid in self._nodes
        )

    # --- Connection operations ---

    @property
    def connections(self) -> list[Connection]:
        """Get all connections (read-only copy), including dangling ones."""
        return list(self._connections.values())

    def add_connection(self, connection: Connection) -> bool:
        """
        Add a connection to the graph.

        Returns False for self-loops or if either endpoint doesn't exist.
        Duplicates and cycles are not checked here.
        """
        if connection.source_id == connection.target_id:
            return False
        if connection.source_id not in self._nodes:
            return False
        if connection.target_id not in self._nodes:
            return False

        self._store_connection(connection)
        return True

    def _store_connection(self, connection: Connection) -> None:
        self._connections[connection.id] = connection
        self._incident.setdefault(connection.source_id, set()).add(connection.id)
        self._incident.setdefault(connection.target_id, set()).add(connection.id)

    def remove_connection(self, connection_id: ConnectionId) -> Connection | None:
        """Remove a connection by ID. Missing ids are ignored."""
        conn = self._connections.pop(connection_id, None)
        if conn is None:
            return None
        for endpoint in (conn.source_id, conn.target_id):
            incident = self._incident.get(endpoint)
            if incident is not None:
                incident.discard(connection_id)
                if not incident:
                    del self._incident[endpoint]
        return conn

    def get_connection(self, connection_id: ConnectionId) -> Connection | None:
        return self._connections.get(connection_id)

    def require_connection(self, connection_id: ConnectionId) -> Connection:
        conn = self._connections.get(connection_id)
        if conn is None:
            raise InvalidReference("connection", connection_id)
        return conn

    def find_connections(self, source_id: NodeId, target_id: NodeId) -> list[Connection]:
        """All connections with exactly this (source, target) pair."""
        return [
            self._connections[cid]
            for cid in self._incident.get(source_id, ())
            if self._connections[cid].source_id == source_id
            and self._connections[cid].target_id == target_id
        ]

    def incident_connections(self, node_id: NodeId) -> list[Connection]:
        """Connections that start or end at a node."""
        return [self._connections[cid] for cid in self._incident.get(node_id, ())]

    def is_dangling(self, connection: Connection) -> bool:
        return connection.source_id not in self._nodes or connection.target_id not in self._nodes

    def renderable_connections(self) -> list[Connection]:
        """Connections whose endpoints both exist; dangling ones are skipped."""
        return [c for c in self._connections.values() if not self.is_dangling(c)]

    def collect_garbage(self) -> list[Connection]:
        """Remove dangling connections. Returns what was removed."""
        dangling = [c for c in self._connections.values() if self.is_dangling(c)]
        for conn in dangling:
            self.remove_connection(conn.id)
        if dangling:
            logger.info("Collected %d dangling connection(s)", len(dangling))
        return dangling

    # --- Group operations ---

    @property
    def groups(self) -> list[Group]:
        """Get all groups (read-only copy)."""
        return list(self._groups.values())

    def add_group(self, group: Group) -> bool:
        """
        Add a group to the graph.

        Members that already belong to another group leave it first; a
        group left with fewer than two members is dissolved. Unknown node
        ids are dropped from the membership.

        Returns False (and stores nothing) if fewer than two members exist.
        """
        members = frozenset(nid for nid in group.member_ids if nid in self._nodes)
        if len(members) < 2:
            return False
        for nid in members:
            self._leave_group(nid)
        group.member_ids = members
        self._groups[group.id] = group
        for nid in members:
            self._group_of[nid] = group.id
        return True

    def remove_group(self, group_id: GroupId) -> Group | None:
        """Remove a group (does not remove the nodes)."""
        group = self._groups.pop(group_id, None)
        if group is None:
            return None
        for nid in group.member_ids:
            if self._group_of.get(nid) == group_id:
                del self._group_of[nid]
        return group

    def get_group(self, group_id: GroupId) -> Group | None:
        return self._groups.get(group_id)

    def require_group(self, group_id: GroupId) -> Group:
        group = self._groups.get(group_id)
        if group is None:
            raise InvalidReference("group", group_id)
        return group

    def group_of(self, node_id: NodeId) -> Group | None:
        """The group a node belongs to, if any."""
        group_id = self._group_of.get(node_id)
        return self._groups.get(group_id) if group_id else None

    def _leave_group(self, node_id: NodeId) -> None:
        group = self.group_of(node_id)
        if group is None:
            return
        del self._group_of[node_id]
        group.member_ids = group.member_ids - {node_id}
        if len(group.member_ids) < 2:
            self.remove_group(group.id)
            logger.info("Dissolved group %s (fewer than two members left)", group.id)

    # --- Utility ---

    def clear(self) -> None:
        """Remove all nodes, connections, and groups."""
        self._retired_ids.update(self._nodes)
        self._nodes.clear()
        self._connections.clear()
        self._groups.clear()
        self._incident.clear()
        self._group_of.clear()

    def load(
        self,
        nodes: Iterable[Node],
        connections: Iterable[Connection],
        groups: Iterable[Group] = (),
    ) -> None:
        """
        Replace the contents of the graph.

        Connections are stored as given, dangling or not; call
        ``collect_garbage`` afterwards to drop the dangling ones.
        """
        self.clear()
        for node in nodes:
            self._retired_ids.discard(node.id)
            self.add_node(node)
        for conn in connections:
            self._store_connection(conn)
        for group in groups:
            self.add_group(group)

    def __len__(self) -> int:
        """Return the number of nodes."""
        return len(self._nodes)

    def __contains__(self, node_id: NodeId) -> bool:
        """Check if a node exists in the graph."""
        return node_id in self._nodes
