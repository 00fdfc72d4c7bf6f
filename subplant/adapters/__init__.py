from .networkx import from_nx, to_nx
from .dataframe_adapter import from_dataframes, to_dataframes

__all__ = ["from_dataframes", "from_nx", "to_dataframes", "to_nx"]
