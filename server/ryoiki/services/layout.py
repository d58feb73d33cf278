import json
from typing import Dict, List

from pydantic import ValidationError

from ryoiki.models import Node, RectNode

LANGUAGE_COLORS: Dict[str, str] = {
    "default": "#6b7280",
    "typescript": "#3178c6",
    "javascript": "#f1e05a",
    "rust": "#dea584",
    "python": "#3572A5",
    "java": "#b07219",
    "go": "#00ADD8",
    "cpp": "#f34b7d",
    "c": "#555555",
    "csharp": "#178600",
    "php": "#4F5D95",
    "ruby": "#701516",
    "kotlin": "#A97BFF",
    "swift": "#F05138",
    "scala": "#DC322F",
    "shell": "#89e051",
    "powershell": "#012456",
    "html": "#E34C26",
    "css": "#563d7c",
    "json": "#cccccc",
    "yaml": "#cb171e",
    "toml": "#9c4221",
    "xml": "#9cdcfe",
    "svelte": "#ff3e00",
    "objective-c": "#438eff",
    "objective-cpp": "#6866fb",
    "ocaml": "#ef7a00",
    "haskell": "#5e5086",
    "r": "#198ce7",
    "sql": "#c97b0f",
    "proto": "#b2b7f8",
    "graphql": "#e10098",
    "terraform": "#5c4ee5",
    "hcl": "#3f6",
    "nix": "#7ebae4",
    "dart": "#00B4AB",
    "elm": "#60B5CC",
    "groovy": "#e69f56",
    "gradle": "#02303A",
    "markdown": "#083fa1",
    "restructuredtext": "#4b2f20",
    "ini": "#7d8c7c",
    "batch": "#C1F12E",
    "make": "#427819",
    "docker": "#1D63ED",
    "cmake": "#0CA4C3",
    "bazel": "#006400",
    "unknown": "#cccccc",
    "mixed": "#999999",
}


def parse_tree_json(text: str) -> Node:
    """Parse a serialized tree, raising ValueError with a readable message."""
    try:
        return Node.model_validate(json.loads(text))
    except (ValueError, ValidationError) as e:
        raise ValueError(f"Parse error: {e}") from e


def layout_node(
    node: Node,
    x: float,
    y: float,
    width: float,
    height: float,
    depth: int,
    rects: List[RectNode],
) -> None:
    """
    Slice-and-dice layout of `node` into the given rectangle.

    Files become one rectangle each. A directory splits its rectangle among
    its children, in order, proportionally to their lines of code: along x
    when the rectangle is wider than tall, along y otherwise. Directories with
    no lines below them produce nothing.
    """
    if node.kind == "file":
        rects.append(
            RectNode(
                path=node.path,
                x=x,
                y=y,
                width=width,
                height=height,
                depth=depth,
                metrics=node.metrics.model_copy(),
                language=node.language,
            )
        )
        return

    children = node.children or []
    total_loc = sum(child.metrics.loc for child in children)
    if total_loc == 0:
        return

    current_x = x
    current_y = y
    for child in children:
        ratio = child.metrics.loc / total_loc
        if width > height:
            child_width = width * ratio
            layout_node(child, current_x, current_y, child_width, height, depth + 1, rects)
            current_x += child_width
        else:
            child_height = height * ratio
            layout_node(child, current_x, current_y, width, child_height, depth + 1, rects)
            current_y += child_height


def layout_treemap(tree: Node, width: float, height: float) -> List[RectNode]:
    rects: List[RectNode] = []
    layout_node(tree, 0.0, 0.0, width, height, 0, rects)
    return rects
