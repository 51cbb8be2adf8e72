"""dotkit — install and verify a personal dotfiles environment."""

__version__ = "0.1.0"
