"""Plot functionality: the claim record and its row codec."""

from plotgrid.core.plot.codec import (
    decode_coordinate,
    decode_list,
    decode_pvp,
    encode_list,
    encode_pvp,
    plot_from_row,
    plot_params,
)
from plotgrid.core.plot.models import LIST_SEPARATOR, Plot, PlotKey

__all__ = [
    "Plot",
    "PlotKey",
    "LIST_SEPARATOR",
    "encode_list",
    "decode_list",
    "encode_pvp",
    "decode_pvp",
    "decode_coordinate",
    "plot_from_row",
    "plot_params",
]
