"""
Node Kinds - Closed set of node variants and their static traits.

Every node on the canvas is one of a fixed set of kinds. Behaviour that
depends on the kind (default size, icon, whether it accepts incoming
connections) is looked up in ``NODE_KINDS`` instead of being decided by
runtime type checks scattered around the engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from gen_canvas.core.geometry import Size2D


class NodeKind(Enum):
    """Variants of generation nodes."""
    TEXT_TO_IMAGE = "TEXT_TO_IMAGE"
    TEXT_TO_VIDEO = "TEXT_TO_VIDEO"
    CREATIVE_DESC = "CREATIVE_DESC"
    ORIGINAL_IMAGE = "ORIGINAL_IMAGE"


class NodeCategory(Enum):
    """Categories for organizing nodes in the palette."""
    INPUT = "input"
    GENERATION = "generation"
    TEXT = "text"


@dataclass(frozen=True)
class NodeKindSpec:
    """
    Static traits of a node kind.

    Attributes:
        kind: The variant this entry describes
        title: Default node title
        category: Palette category
        icon: Icon name, resolved by the presentation layer
        default_size: World-space size of a freshly added node
        min_width: Smallest width a resize may produce
        accepts_input: If False, the node can never be a connection target
    """
    kind: NodeKind
    title: str
    category: NodeCategory
    icon: str
    default_size: Size2D
    min_width: float
    accepts_input: bool = True
    produces_output: bool = True


NODE_KINDS: dict[NodeKind, NodeKindSpec] = {
    NodeKind.TEXT_TO_IMAGE: NodeKindSpec(
        kind=NodeKind.TEXT_TO_IMAGE,
        title="Text to Image",
        category=NodeCategory.GENERATION,
        icon="image",
        default_size=Size2D(400.0, 400.0),
        min_width=400.0,
    ),
    NodeKind.TEXT_TO_VIDEO: NodeKindSpec(
        kind=NodeKind.TEXT_TO_VIDEO,
        title="Text to Video",
        category=NodeCategory.GENERATION,
        icon="video",
        default_size=Size2D(400.0 * 16 / 9, 400.0),
        min_width=400.0,
    ),
    NodeKind.CREATIVE_DESC: NodeKindSpec(
        kind=NodeKind.CREATIVE_DESC,
        title="Creative Description",
        category=NodeCategory.TEXT,
        icon="sparkles",
        default_size=Size2D(320.0, 240.0),
        min_width=280.0,
    ),
    NodeKind.ORIGINAL_IMAGE: NodeKindSpec(
        kind=NodeKind.ORIGINAL_IMAGE,
        title="Original Image",
        category=NodeCategory.INPUT,
        icon="upload",
        default_size=Size2D(320.0, 240.0),
        min_width=150.0,
        accepts_input=False,
    ),
}


def kind_spec(kind: NodeKind) -> NodeKindSpec:
    """Look up the static traits of a node kind."""
    return NODE_KINDS[kind]


def kinds_in_category(category: NodeCategory) -> list[NodeKindSpec]:
    """All node kinds in a palette category, in declaration order."""
    return [spec for spec in NODE_KINDS.values() if spec.category == category]
