"""
Static asset helpers feeding the template tree.
"""

from .sprite import generate_svg_sprite, svg_to_symbol, symbol_id

__all__ = ["generate_svg_sprite", "svg_to_symbol", "symbol_id"]
