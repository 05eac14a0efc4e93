"""Cost calculation and allocation."""

from .allocator import CostAllocator, bracket_factor, round_half_up

__all__ = ["CostAllocator", "bracket_factor", "round_half_up"]
