from .dot import DotParseError, parse, read_dot, write, write_dot

__all__ = ["DotParseError", "parse", "read_dot", "write", "write_dot"]
