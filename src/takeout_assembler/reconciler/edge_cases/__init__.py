"""Edge case handlers for special file types."""

from .motion_photos import LinkedPair, link_motion_pairs

__all__ = ['LinkedPair', 'link_motion_pairs']
