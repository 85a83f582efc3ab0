import logging
import math
import re
from typing import List, Tuple

from node_lab.execution.materializer import ResultPayload
from node_lab.models.factory.Nodes import ImageSplitNodeModel
from node_lab.node_system.Node import Node
from node_lab.util.const import GRID_CELLS, HANDLE_IMAGE
from node_lab.util.errors import InputError

logger = logging.getLogger(__name__)

Box = Tuple[int, int, int, int]


def parse_cell_selection(selection: str, total: int) -> List[int]:
    """
    1-indexed, row-major cell numbers to extract. "0" selects every cell;
    otherwise numbers are separated by commas or whitespace and anything
    outside [1, total] is dropped.
    """
    selection = (selection or '0').strip()
    if selection == '0':
        return list(range(1, total + 1))
    cells = []
    for token in re.split(r'[,\s]+', selection):
        try:
            number = int(token)
        except ValueError:
            continue
        if 1 <= number <= total:
            cells.append(number)
    return cells


def cell_boxes(width: int, height: int, grid: int, cells: List[int], trim: int) -> List[Tuple[int, Box]]:
    """
    Crop boxes (left, top, width, height) for the selected cells of a
    ``grid`` x ``grid`` layout, each shrunk by ``trim`` on every side.

    Raises:
        InputError: When the trim leaves no pixels in a cell
    """
    cell_w = width / grid
    cell_h = height / grid
    crop_w = math.floor(cell_w - trim * 2)
    crop_h = math.floor(cell_h - trim * 2)
    if crop_w <= 0 or crop_h <= 0:
        raise InputError(
            f"Trim too large: {trim}px leaves no pixels in a {cell_w:.0f}x{cell_h:.0f} cell"
        )
    boxes = []
    for number in cells:
        row, col = divmod(number - 1, grid)
        left = math.floor(col * cell_w + trim)
        top = math.floor(row * cell_h + trim)
        boxes.append((number, (left, top, crop_w, crop_h)))
    return boxes


class NodeImageSplit(Node):
    """Cuts the first input image into grid cells and uploads each selected cell."""

    def __init__(self, data: ImageSplitNodeModel, **kwargs):
        super().__init__(data, **kwargs)
        self.grid = GRID_CELLS.get(data.data.grid_type, 2)
        self.selection = data.data.grid_select
        self.trim = data.data.grid_trim if data.data.grid_trim is not None else 10

    async def process(self, inputs):
        if not inputs.images:
            raise InputError("Missing input image")
        self.status('Processing Split...')

        cells = parse_cell_selection(self.selection, self.grid * self.grid)
        if not cells:
            raise InputError(f"No valid cell selected in '{self.selection}'")

        codec = self.service('codec')
        raster = await codec.load(inputs.images[0].url)
        boxes = cell_boxes(raster.width, raster.height, self.grid, cells, self.trim)
        logger.debug("NodeImageSplit:%s extracting cells %s from %dx%d",
                     self.node_id, cells, raster.width, raster.height)

        total = len(boxes)
        for i, (number, box) in enumerate(boxes):
            png = codec.encode_png(codec.crop(raster, box))
            artifact = await self.rehost(png, name=f"split_{number}")
            self.materialize(
                ResultPayload(
                    kind=HANDLE_IMAGE,
                    label=f"Cell {number}",
                    url=artifact.url,
                    medium_url=artifact.display_url,
                ),
                index=i,
                count=total,
            )
            self.update(progress=math.floor((i + 1) / total * 100))

        return {'status_msg': 'Split Done'}
