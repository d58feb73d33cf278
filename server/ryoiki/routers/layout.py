from typing import Dict, List

from fastapi import APIRouter

from ryoiki.models import LayoutRequest, RectNode
from ryoiki.services.layout import LANGUAGE_COLORS, layout_treemap

router = APIRouter(prefix="/api/layout", tags=["layout"])


@router.post("", response_model=List[RectNode])
async def compute_layout(request: LayoutRequest):
    """
    Lay out a metrics tree as treemap rectangles, one per file.
    """
    return layout_treemap(request.tree, request.width, request.height)


@router.get("/colors", response_model=Dict[str, str])
async def get_language_colors():
    return LANGUAGE_COLORS
