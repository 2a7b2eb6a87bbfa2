"""
yurt - AUR helper front-end for Arch Linux

Companion to pacman, featuring:
- Detection of hanging packages (installed as deps, no longer needed)
- Batched, concurrent AUR metadata queries
- Ranked AUR search
"""

__version__ = "0.3.0"
__author__ = "yurt contributors"
