"""
Building blocks used by the links: event sources, background loops and diagnostic helpers.
"""
