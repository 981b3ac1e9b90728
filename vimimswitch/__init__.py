"""vimimswitch — switch the system input method on Vim mode changes."""

__version__ = '1.0.0'
